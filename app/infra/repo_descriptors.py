import sqlite3
import time
from dataclasses import dataclass


@dataclass(frozen=True)
class BlobDescriptorRow:
    sha256: str
    size: int
    type: str
    extension: str
    uploaded: int


def _from_row(row: sqlite3.Row) -> BlobDescriptorRow:
    return BlobDescriptorRow(
        sha256=str(row["sha256"]),
        size=int(row["size"]),
        type=str(row["type"]),
        extension=str(row["extension"]),
        uploaded=int(row["uploaded"]),
    )


class DescriptorRepo:
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def upsert(self, sha256: str, size: int, type: str, extension: str) -> BlobDescriptorRow:
        self._conn.execute(
            """
            INSERT INTO blob_descriptors(sha256, size, type, extension, uploaded)
            VALUES(?, ?, ?, ?, ?)
            ON CONFLICT(sha256) DO UPDATE SET
              size=excluded.size,
              type=excluded.type,
              extension=excluded.extension,
              uploaded=excluded.uploaded
            """,
            (sha256, size, type, extension, int(time.time())),
        )
        self._conn.commit()
        found = self.get(sha256)
        if found is None:
            raise RuntimeError(f"Failed to record descriptor: {sha256}")
        return found

    def get(self, sha256: str) -> BlobDescriptorRow | None:
        row = self._conn.execute(
            "SELECT * FROM blob_descriptors WHERE sha256 = ?", (sha256,)
        ).fetchone()
        return _from_row(row) if row is not None else None

    def list_all(self) -> list[BlobDescriptorRow]:
        rows = self._conn.execute(
            "SELECT * FROM blob_descriptors ORDER BY uploaded DESC, sha256 ASC"
        ).fetchall()
        return [_from_row(r) for r in rows]

    def delete(self, sha256: str) -> bool:
        cur = self._conn.execute("DELETE FROM blob_descriptors WHERE sha256 = ?", (sha256,))
        self._conn.commit()
        return cur.rowcount > 0
