import sqlite3
from dataclasses import dataclass

from app.domain.errors import NotFound, PersistenceError


@dataclass(frozen=True)
class BlobMapping:
    sha256: str
    cid: str
    extension: str
    created_at: str


class MappingRepo:
    """Persistent sha256 -> IPFS CID table.

    Writes are single-statement upserts, so concurrent writers for the same
    hash resolve to whichever row sqlite commits last.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def put(self, sha256: str, cid: str, extension: str) -> None:
        if not cid:
            raise PersistenceError(f"Refusing to store empty cid for sha256={sha256}")
        try:
            self._conn.execute(
                """
                INSERT OR REPLACE INTO ipfs_blossom_mapping(sha256, ipfs_cid, extension)
                VALUES(?, ?, ?)
                """,
                (sha256, cid, extension),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to store mapping for sha256={sha256}: {e}") from e

    def get(self, sha256: str) -> BlobMapping:
        try:
            row = self._conn.execute(
                "SELECT * FROM ipfs_blossom_mapping WHERE sha256 = ?", (sha256,)
            ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to query mapping for sha256={sha256}: {e}") from e
        if row is None or not row["ipfs_cid"]:
            raise NotFound(sha256)
        return BlobMapping(
            sha256=str(row["sha256"]),
            cid=str(row["ipfs_cid"]),
            extension=row["extension"] or "",
            created_at=str(row["created_at"]),
        )
