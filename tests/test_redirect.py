from app.features.bridge.redirect import parse_blob_path, redirect_target
from app.infra.repo_mappings import BlobMapping

GW = "https://gw.example/ipfs/"
H = "c" * 64


def lookup(sha256: str) -> BlobMapping | None:
    if sha256 == H:
        return BlobMapping(sha256=H, cid="bafyc", extension=".png", created_at="")
    return None


def test_parse_blob_path() -> None:
    assert parse_blob_path(f"/{H}.png") == (H, ".png")
    assert parse_blob_path(f"/{H}.tar.gz") is None
    assert parse_blob_path(f"/{H}") is None
    assert parse_blob_path("/short.png") is None
    assert parse_blob_path(f"/{'z' * 64}.png") is None


def test_redirect_uses_extension_from_path() -> None:
    assert redirect_target("GET", f"/{H}.jpg", lookup, GW) == "https://gw.example/ipfs/bafyc?filename=file.jpg"


def test_no_redirect_on_miss_or_other_methods() -> None:
    assert redirect_target("GET", f"/{'d' * 64}.png", lookup, GW) is None
    assert redirect_target("HEAD", f"/{H}.png", lookup, GW) is None
    assert redirect_target("DELETE", f"/{H}.png", lookup, GW) is None
