import sqlite3
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class DbConfig:
    path: Path


def connect(cfg: DbConfig) -> sqlite3.Connection:
    cfg.path.parent.mkdir(parents=True, exist_ok=True)
    # One shared connection serves the FastAPI threadpool; each statement is atomic on its own.
    conn = sqlite3.connect(cfg.path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def migrate(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS ipfs_blossom_mapping (
          sha256 TEXT PRIMARY KEY,
          ipfs_cid TEXT NOT NULL,
          extension TEXT,
          created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS blob_descriptors (
          sha256 TEXT PRIMARY KEY,
          size INTEGER NOT NULL,
          type TEXT NOT NULL,
          extension TEXT NOT NULL,
          uploaded INTEGER NOT NULL
        );
        """
    )
    conn.commit()


def ping(conn: sqlite3.Connection) -> None:
    conn.execute("SELECT 1").fetchone()
