import hashlib
import json
import sqlite3
import sys
from collections.abc import Iterator
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

# Ensure `import app...` works without installing the package.
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app.config import AppConfig  # noqa: E402
from app.infra.db import DbConfig, connect, migrate  # noqa: E402
from app.infra.ipfs import IpfsClient  # noqa: E402
from app.main import create_app  # noqa: E402

GATEWAY = "https://gw.example/ipfs/"


class FakeKubo:
    """In-memory stand-in for the Kubo RPC endpoints the bridge calls."""

    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}
        self.down = False
        self.adds = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.down:
            raise httpx.ConnectError("connection refused", request=request)
        path = request.url.path
        if path == "/api/v0/version":
            return httpx.Response(200, json={"Version": "0.29.0"})
        if path == "/api/v0/add":
            data = _multipart_payload(request)
            cid = "bafk" + hashlib.sha256(data).hexdigest()[:20]
            self.blobs[cid] = data
            self.adds += 1
            body = json.dumps({"Name": "blob", "Hash": cid, "Size": str(len(data))}) + "\n"
            return httpx.Response(200, text=body)
        if path == "/api/v0/cat":
            cid = request.url.params.get("arg", "")
            if cid not in self.blobs:
                return httpx.Response(500, json={"Message": "block not found", "Code": 0})
            return httpx.Response(200, content=self.blobs[cid])
        return httpx.Response(404, text="404 page not found")


def _multipart_payload(request: httpx.Request) -> bytes:
    boundary = request.headers["content-type"].split("boundary=", 1)[1].encode()
    content = request.read()
    start = content.index(b"\r\n\r\n") + 4
    end = content.rindex(b"\r\n--" + boundary + b"--")
    return content[start:end]


@pytest.fixture
def kubo() -> FakeKubo:
    return FakeKubo()


@pytest.fixture
def ipfs(kubo: FakeKubo) -> Iterator[IpfsClient]:
    client = IpfsClient("127.0.0.1:5001", transport=httpx.MockTransport(kubo.handler))
    yield client
    client.close()


@pytest.fixture
def conn(tmp_path: Path) -> Iterator[sqlite3.Connection]:
    c = connect(DbConfig(path=tmp_path / "blossom.db"))
    migrate(c)
    yield c
    c.close()


@pytest.fixture
def cfg(tmp_path: Path) -> AppConfig:
    return AppConfig(
        ipfs_api_url="127.0.0.1:5001",
        gateway_url=GATEWAY,
        db_path=tmp_path / "app.db",
        service_url="http://blossom.test",
    )


@pytest.fixture
def client(cfg: AppConfig, ipfs: IpfsClient) -> Iterator[TestClient]:
    app = create_app(cfg, ipfs=ipfs)
    with TestClient(app) as c:
        yield c
    app.state.db.close()
