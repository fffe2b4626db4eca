import httpx
import pytest

from app.domain.errors import StoreUnavailable
from app.infra.ipfs import IpfsClient, normalize_api_url

from conftest import FakeKubo


def test_normalize_api_url() -> None:
    assert normalize_api_url("127.0.0.1:5001") == "http://127.0.0.1:5001"
    assert normalize_api_url("https://ipfs.example/") == "https://ipfs.example"


def test_add_then_cat(ipfs: IpfsClient, kubo: FakeKubo) -> None:
    cid = ipfs.add(b"hello ipfs")

    assert cid in kubo.blobs
    assert ipfs.cat(cid) == b"hello ipfs"


def test_cat_unknown_cid_is_store_unavailable(ipfs: IpfsClient) -> None:
    with pytest.raises(StoreUnavailable):
        ipfs.cat("bafk-missing")


def test_transport_failure_is_store_unavailable(ipfs: IpfsClient, kubo: FakeKubo) -> None:
    kubo.down = True

    with pytest.raises(StoreUnavailable):
        ipfs.add(b"data")
    assert ipfs.is_up() is False


def test_add_with_unexpected_body_is_store_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="not json")

    client = IpfsClient("ipfs:5001", transport=httpx.MockTransport(handler))
    try:
        with pytest.raises(StoreUnavailable):
            client.add(b"data")
    finally:
        client.close()


def test_is_up(ipfs: IpfsClient) -> None:
    assert ipfs.is_up() is True
