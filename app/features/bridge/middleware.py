import logging

from starlette.concurrency import run_in_threadpool
from starlette.responses import RedirectResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from app.features.bridge.capture import CapturingSend, emit, with_content_length
from app.features.bridge.redirect import redirect_target
from app.features.bridge.rewrite import mapping_lookup, rewrite_body, should_rewrite
from app.infra.repo_mappings import MappingRepo

logger = logging.getLogger(__name__)


class BlobGatewayMiddleware:
    """Sends blob traffic to the IPFS gateway.

    ``GET /<sha256>.<ext>`` with a known mapping is answered with a 302
    before the app runs. Every other request runs the app against a
    ``CapturingSend`` and its response is rewritten on the way out when it
    carries mapped blob descriptors.

    Mapping lookups hit sqlite, so both steps run in the threadpool.
    """

    def __init__(self, app: ASGIApp, *, mappings: MappingRepo, gateway_base: str) -> None:
        self.app = app
        self.lookup = mapping_lookup(mappings)
        self.gateway_base = gateway_base

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method, path = scope["method"], scope["path"]

        target = await run_in_threadpool(redirect_target, method, path, self.lookup, self.gateway_base)
        if target is not None:
            logger.debug("Redirecting blob request %s to IPFS gateway: %s", path, target)
            await RedirectResponse(target, status_code=302)(scope, receive, send)
            return

        capture = CapturingSend()
        await self.app(scope, receive, capture)

        captured = capture.captured
        body = bytes(captured.body)
        if should_rewrite(method, captured.status, body):
            rewritten = await run_in_threadpool(rewrite_body, body, self.lookup, self.gateway_base)
            if rewritten is not None:
                logger.debug("Rewrote %s %s response: %d -> %d bytes", method, path, len(body), len(rewritten))
                headers = with_content_length(captured.headers, len(rewritten))
                await emit(send, captured.status, headers, rewritten)
                return

        await emit(send, captured.status, captured.headers, body)
