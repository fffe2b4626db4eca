import io
import logging

from app.domain.errors import PersistenceError
from app.infra.ipfs import IpfsClient
from app.infra.repo_mappings import MappingRepo

logger = logging.getLogger(__name__)


class BlobService:
    """Ingestion and retrieval pipelines between Blossom hashes and IPFS."""

    def __init__(self, *, mappings: MappingRepo, ipfs: IpfsClient) -> None:
        self._mappings = mappings
        self._ipfs = ipfs

    def store_blob(self, sha256: str, ext: str, data: bytes) -> str:
        logger.info("Storing blob: sha256=%s, ext=%s, size=%d", sha256, ext, len(data))

        # Upload first: a mapping row must never point at content IPFS does not have.
        cid = self._ipfs.add(data)
        logger.info("Uploaded to IPFS: sha256=%s -> cid=%s", sha256, cid)

        try:
            self._mappings.put(sha256, cid, ext)
        except PersistenceError:
            logger.error("Blob uploaded but mapping not stored, cid=%s is unreferenced: sha256=%s", cid, sha256)
            raise
        return cid

    def load_blob(self, sha256: str, ext: str = "") -> io.BytesIO:
        logger.info("Loading blob: sha256=%s, ext=%s", sha256, ext)

        mapping = self._mappings.get(sha256)
        data = self._ipfs.cat(mapping.cid)

        logger.info("Retrieved from IPFS: sha256=%s -> cid=%s, size=%d", sha256, mapping.cid, len(data))
        return io.BytesIO(data)
