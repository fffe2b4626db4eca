import re

from app.features.blobs.gateway import gateway_url
from app.features.bridge.rewrite import Lookup

SHA256_HEX = re.compile(r"[0-9a-fA-F]{64}")


def parse_blob_path(path: str) -> tuple[str, str] | None:
    """Split ``/<sha256>.<ext>`` into the hash and the extension (dot included)."""

    name = path[1:] if path.startswith("/") else path
    dot = name.rfind(".")
    if dot <= 0:
        return None
    sha256, ext = name[:dot], name[dot:]
    if not SHA256_HEX.fullmatch(sha256):
        return None
    return sha256, ext


def redirect_target(method: str, path: str, lookup: Lookup, gateway_base: str) -> str | None:
    if method != "GET":
        return None
    parsed = parse_blob_path(path)
    if parsed is None:
        return None
    sha256, ext = parsed
    mapping = lookup(sha256)
    if mapping is None:
        return None
    return gateway_url(gateway_base, mapping.cid, ext)
