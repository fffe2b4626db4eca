import sqlite3

import pytest

from app.domain.errors import NotFound, PersistenceError
from app.infra.repo_mappings import MappingRepo

H = "ab" * 32


def test_put_then_get(conn: sqlite3.Connection) -> None:
    repo = MappingRepo(conn)
    repo.put(H, "bafy-one", ".png")

    mapping = repo.get(H)

    assert mapping.sha256 == H
    assert mapping.cid == "bafy-one"
    assert mapping.extension == ".png"
    assert mapping.created_at


def test_put_replaces_existing_row(conn: sqlite3.Connection) -> None:
    repo = MappingRepo(conn)
    repo.put(H, "bafy-one", ".png")
    repo.put(H, "bafy-two", "")

    mapping = repo.get(H)
    count = conn.execute("SELECT COUNT(*) FROM ipfs_blossom_mapping").fetchone()[0]

    assert mapping.cid == "bafy-two"
    assert mapping.extension == ""
    assert count == 1


def test_get_missing_raises_not_found(conn: sqlite3.Connection) -> None:
    with pytest.raises(NotFound) as exc_info:
        MappingRepo(conn).get(H)

    assert exc_info.value.sha256 == H


def test_put_rejects_empty_cid(conn: sqlite3.Connection) -> None:
    with pytest.raises(PersistenceError):
        MappingRepo(conn).put(H, "", ".png")


def test_closed_connection_surfaces_persistence_error(conn: sqlite3.Connection) -> None:
    repo = MappingRepo(conn)
    conn.close()

    with pytest.raises(PersistenceError):
        repo.put(H, "bafy-one", ".png")
    with pytest.raises(PersistenceError):
        repo.get(H)
