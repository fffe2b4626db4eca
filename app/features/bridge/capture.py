from dataclasses import dataclass, field

from starlette.types import Message

Headers = list[tuple[bytes, bytes]]


@dataclass
class CapturedResponse:
    status: int = 200
    headers: Headers = field(default_factory=list)
    body: bytearray = field(default_factory=bytearray)


class CapturingSend:
    """ASGI ``send`` stand-in that buffers the whole response.

    Created once per request and handed to the wrapped app instead of the
    server's ``send``. Nothing reaches the client; the caller decides what to
    emit from ``captured`` once the app returns.
    """

    def __init__(self) -> None:
        self.captured = CapturedResponse()

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self.captured.status = int(message["status"])
            self.captured.headers = [(bytes(k), bytes(v)) for k, v in message.get("headers", [])]
        elif message["type"] == "http.response.body":
            self.captured.body.extend(message.get("body", b""))


async def emit(send, status: int, headers: Headers, body: bytes) -> None:
    await send({"type": "http.response.start", "status": status, "headers": headers})
    await send({"type": "http.response.body", "body": body})


def with_content_length(headers: Headers, length: int) -> Headers:
    kept = [(k, v) for k, v in headers if k.lower() != b"content-length"]
    kept.append((b"content-length", str(length).encode("latin-1")))
    return kept
