"""Rewrites captured Blossom responses to point at the IPFS gateway.

The blob handler answers list and upload requests in one of three encodings:
a JSON array of descriptors, newline-delimited descriptors, or a single
descriptor object. ``classify`` decides which one a body is, once, and
``rewrite_body`` adds a ``cid`` field and replaces ``url`` on every
descriptor whose ``sha256`` has a mapping.

Anything that cannot be recognised is left alone: ``rewrite_body`` returns
``None`` and the caller sends the original bytes.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Union

from app.domain.errors import NotFound, PersistenceError
from app.features.blobs.gateway import gateway_url
from app.infra.repo_mappings import BlobMapping, MappingRepo

logger = logging.getLogger(__name__)

SHA256_MARKER = '"sha256"'
REWRITABLE_METHODS = frozenset({"GET", "PUT"})

Lookup = Callable[[str], Union[BlobMapping, None]]


@dataclass(frozen=True)
class ArrayShape:
    items: list[dict[str, Any]]


@dataclass(frozen=True)
class LineDelimitedShape:
    # Only the lines that survived filtering; malformed ones are already gone.
    items: list[dict[str, Any]]


@dataclass(frozen=True)
class ObjectShape:
    item: dict[str, Any]


@dataclass(frozen=True)
class Unrecognized:
    pass


BodyShape = Union[ArrayShape, LineDelimitedShape, ObjectShape, Unrecognized]


def mapping_lookup(mappings: MappingRepo) -> Lookup:
    """Adapt ``MappingRepo.get`` so that every failure reads as a miss."""

    def lookup(sha256: str) -> BlobMapping | None:
        try:
            return mappings.get(sha256)
        except NotFound:
            logger.debug("No mapping for sha256=%s", sha256)
        except PersistenceError as e:
            logger.warning("Mapping lookup failed for sha256=%s: %s", sha256, e)
        return None

    return lookup


def should_rewrite(method: str, status: int, body: bytes) -> bool:
    return method in REWRITABLE_METHODS and 200 <= status < 300 and len(body) > 0


def _parse_array(text: str) -> list[dict[str, Any]] | None:
    if not text.lstrip().startswith("["):
        return None
    try:
        value = json.loads(text)
    except ValueError:
        return None
    if not isinstance(value, list) or not value:
        return None
    if not all(isinstance(v, dict) for v in value):
        return None
    return value


def _parse_lines(text: str) -> list[dict[str, Any]]:
    items: list[dict[str, Any]] = []
    for i, raw in enumerate(text.replace("\r\n", "\n").split("\n")):
        line = raw.strip()
        if not line:
            continue
        if not (line.startswith("{") and line.endswith("}")):
            logger.debug("Dropping line %d, not a JSON object: %.50s", i, line)
            continue
        try:
            item = json.loads(line)
        except ValueError as e:
            logger.debug("Dropping line %d, invalid JSON (%s): %.100s", i, e, line)
            continue
        items.append(item)
    return items


def classify(body: bytes) -> BodyShape:
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError:
        return Unrecognized()

    items = _parse_array(text)
    if items is not None:
        return ArrayShape(items)

    markers = text.count(SHA256_MARKER)
    if markers and ("\n" in text or markers > 1) and not text.lstrip().startswith("["):
        lines = _parse_lines(text)
        if lines:
            return LineDelimitedShape(lines)

    if text.startswith("{"):
        try:
            item = json.loads(text)
        except ValueError:
            return Unrecognized()
        if isinstance(item, dict):
            return ObjectShape(item)

    return Unrecognized()


def enrich(item: dict[str, Any], lookup: Lookup, gateway_base: str) -> bool:
    sha256 = item.get("sha256")
    if not isinstance(sha256, str):
        return False
    mapping = lookup(sha256)
    if mapping is None:
        return False
    item["cid"] = mapping.cid
    item["url"] = gateway_url(gateway_base, mapping.cid, mapping.extension)
    return True


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def rewrite_body(body: bytes, lookup: Lookup, gateway_base: str) -> bytes | None:
    shape = classify(body)

    if isinstance(shape, ArrayShape):
        hits = [enrich(item, lookup, gateway_base) for item in shape.items]
        logger.debug("Array body: %d items, %d mapped", len(hits), sum(hits))
        if any(hits):
            return (_dumps(shape.items) + "\n").encode("utf-8")
        return None

    if isinstance(shape, LineDelimitedShape):
        hits = [enrich(item, lookup, gateway_base) for item in shape.items]
        logger.debug("Line-delimited body: %d lines kept, %d mapped", len(hits), sum(hits))
        return ("\n".join(_dumps(item) for item in shape.items) + "\n").encode("utf-8")

    if isinstance(shape, ObjectShape):
        if enrich(shape.item, lookup, gateway_base):
            return (_dumps(shape.item) + "\n").encode("utf-8")
        return None

    return None
