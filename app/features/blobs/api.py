import hashlib
import mimetypes

from fastapi import APIRouter, HTTPException, Request, Response
from starlette.concurrency import run_in_threadpool

from app.domain.errors import BridgeError, NotFound, PersistenceError, StoreUnavailable
from app.features.blobs.schemas import BlobDescriptor
from app.features.bridge.redirect import SHA256_HEX
from app.infra.repo_descriptors import BlobDescriptorRow, DescriptorRepo

router = APIRouter(tags=["blobs"])


def _http_error(e: BridgeError) -> HTTPException:
    if isinstance(e, NotFound):
        return HTTPException(status_code=404, detail="blob_not_found")
    if isinstance(e, StoreUnavailable):
        return HTTPException(status_code=502, detail="store_unavailable")
    if isinstance(e, PersistenceError):
        return HTTPException(status_code=500, detail="persistence_error")
    return HTTPException(status_code=500, detail="bridge_error")


def _split_name(name: str) -> tuple[str, str]:
    sha256, dot, ext = name.partition(".")
    if not SHA256_HEX.fullmatch(sha256):
        raise HTTPException(status_code=404, detail="blob_not_found")
    return sha256.lower(), dot + ext


def _extension_for(content_type: str) -> str:
    mime = content_type.split(";", 1)[0].strip().lower()
    if not mime or mime == "application/octet-stream":
        return ""
    return mimetypes.guess_extension(mime) or ""


def _descriptor(request: Request, row: BlobDescriptorRow) -> BlobDescriptor:
    base = request.app.state.cfg.public_url
    return BlobDescriptor(
        url=f"{base}/{row.sha256}{row.extension}",
        sha256=row.sha256,
        size=row.size,
        type=row.type,
        uploaded=row.uploaded,
    )


@router.put("/upload", response_model=BlobDescriptor)
async def upload_blob(request: Request) -> BlobDescriptor:
    data = await request.body()
    if not data:
        raise HTTPException(status_code=400, detail="empty_blob")

    content_type = request.headers.get("content-type") or "application/octet-stream"
    sha256 = hashlib.sha256(data).hexdigest()
    ext = _extension_for(content_type)

    try:
        await run_in_threadpool(request.app.state.blobs.store_blob, sha256, ext, data)
    except BridgeError as e:
        raise _http_error(e)

    row = await run_in_threadpool(
        DescriptorRepo(request.app.state.db).upsert,
        sha256=sha256,
        size=len(data),
        type=content_type,
        extension=ext,
    )
    return _descriptor(request, row)


@router.get("/list", response_model=list[BlobDescriptor])
def list_blobs(request: Request) -> list[BlobDescriptor]:
    rows = DescriptorRepo(request.app.state.db).list_all()
    return [_descriptor(request, r) for r in rows]


@router.get("/{name}")
def get_blob(request: Request, name: str) -> Response:
    sha256, ext = _split_name(name)
    try:
        stream = request.app.state.blobs.load_blob(sha256, ext)
    except BridgeError as e:
        raise _http_error(e)

    row = DescriptorRepo(request.app.state.db).get(sha256)
    media_type = row.type if row is not None else "application/octet-stream"
    return Response(content=stream.getvalue(), media_type=media_type)


@router.head("/{name}")
def head_blob(request: Request, name: str) -> Response:
    sha256, _ = _split_name(name)
    row = DescriptorRepo(request.app.state.db).get(sha256)
    if row is None:
        raise HTTPException(status_code=404, detail="blob_not_found")
    return Response(headers={"content-type": row.type, "content-length": str(row.size)})


@router.delete("/{name}")
def delete_blob(request: Request, name: str) -> dict[str, object]:
    sha256, _ = _split_name(name)
    if not DescriptorRepo(request.app.state.db).delete(sha256):
        raise HTTPException(status_code=404, detail="blob_not_found")
    return {"sha256": sha256, "deleted": True}
