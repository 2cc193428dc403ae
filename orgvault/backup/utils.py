"""Utility functions for snapshot files."""

import json
import os
import re
import uuid
from pathlib import Path
from typing import Any, Dict, Tuple

from .._utils import logger

SNAPSHOT_SUFFIX = ".json"

# Common filesystem limit for a single path component
MAX_FILENAME_BYTES = 255

_SUFFIX_RE = re.compile(r"\.json$")


def normalize_snapshot_filename(id_or_filename: str) -> Tuple[str, str]:
    """Map a caller-supplied id to a bare filename.

    Every directory component is dropped (both separators), and ``.json``
    is appended when missing, so ``"../../etc/passwd"`` becomes
    ``("passwd", "passwd.json")``. The suffix match is case-sensitive,
    the same rule the file store applies when listing.

    Args:
        id_or_filename: ``"<id>"`` or ``"<id>.json"``

    Returns:
        (id, filename)
    """
    raw = str(id_or_filename or "").strip().replace("\\", "/")
    base = os.path.basename(raw)
    filename = base if _SUFFIX_RE.search(base) else f"{base}{SNAPSHOT_SUFFIX}"
    snapshot_id = _SUFFIX_RE.sub("", filename)
    return snapshot_id, filename


def is_snapshot_filename(name: str) -> bool:
    """True when listing should report ``name`` under an id that reads back."""
    return bool(_SUFFIX_RE.search(name)) and _SUFFIX_RE.sub("", name) not in {"", ".", ".."}


def resolve_snapshot_path(root: Path, id_or_filename: str) -> Tuple[str, Path]:
    """Resolve an id to a path strictly inside ``root``.

    Raises:
        ValueError: if the id is empty, too long for a filename, or would
            resolve outside ``root``
    """
    snapshot_id, filename = normalize_snapshot_filename(id_or_filename)
    if not snapshot_id or snapshot_id in {".", ".."}:
        raise ValueError(f"Invalid snapshot id: {id_or_filename!r}")
    if len(filename.encode("utf-8")) > MAX_FILENAME_BYTES:
        raise ValueError(f"Snapshot id too long: {len(snapshot_id)} characters")

    root = root.resolve()
    path = (root / filename).resolve()
    if path.parent != root:
        raise ValueError(f"Snapshot id escapes backup directory: {id_or_filename!r}")
    return snapshot_id, path


def write_json_atomic(payload: str, output_path: Path) -> int:
    """Write a JSON document via a private temp file, never replacing one.

    The temp file is hard-linked into place, so a concurrent writer for the
    same path fails instead of overwriting.

    Args:
        payload: Serialized JSON
        output_path: Final file path

    Returns:
        Size of written file in bytes

    Raises:
        FileExistsError: if ``output_path`` already exists
    """
    data = payload.encode("utf-8")
    tmp_path = output_path.with_name(f".{output_path.stem}.{uuid.uuid4().hex}.tmp")

    try:
        with open(tmp_path, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.link(tmp_path, output_path)
    finally:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass

    logger.debug(f"Snapshot file written: {output_path} ({len(data):,} bytes)")
    return len(data)


def load_json(path: Path) -> Dict[str, Any]:
    """Load a JSON object from file.

    Raises:
        FileNotFoundError: if the file does not exist
        ValueError: if the content is not a JSON object
    """
    with open(path, "r", encoding="utf-8") as f:
        parsed = json.load(f)

    if not isinstance(parsed, dict):
        raise ValueError("snapshot file does not contain a JSON object")
    return parsed
