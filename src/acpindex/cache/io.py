"""Reading and writing the index document.

The document is pretty-printed JSON with sorted keys, so the same Index
always produces the same bytes.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from acpindex.cache.models import Index
from acpindex.core.errors import IndexBuildError
from acpindex.core.logging import get_logger

log = get_logger("cache.io")


def dumps_index(index: Index) -> str:
    """Serialize an index to its canonical JSON text."""
    data = index.model_dump(mode="json", by_alias=True)
    return json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


def loads_index(text: str, *, source: str = "<string>") -> Index:
    """Parse index JSON text.

    Raises:
        IndexBuildError: If the text is not valid JSON or not a valid index.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise IndexBuildError.malformed(source, f"invalid JSON: {e}") from e
    try:
        return Index.model_validate(data)
    except ValidationError as e:
        err = e.errors()[0]
        loc = ".".join(str(part) for part in err["loc"]) or "<root>"
        raise IndexBuildError.malformed(source, f"{loc}: {err['msg']}") from e


def save_index(index: Index, path: Path) -> None:
    """Write an index document, creating parent directories as needed."""
    text = dumps_index(index)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise IndexBuildError.write_failed(str(path), e.strerror or str(e)) from e
    log.debug("index_saved", path=str(path), bytes=len(text))


def load_index(path: Path) -> Index:
    """Read an index document from disk."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise IndexBuildError.not_found(str(path)) from e
    except (OSError, UnicodeDecodeError) as e:
        raise IndexBuildError.malformed(str(path), str(e)) from e
    index = loads_index(text, source=str(path))
    log.debug("index_loaded", path=str(path), files=len(index.files))
    return index


def file_mtime(path: Path) -> datetime:
    return datetime.fromtimestamp(path.stat().st_mtime, tz=UTC)


def stale_files(index: Index, root: Path) -> list[str]:
    """Recorded source files whose modification time changed or that vanished.

    Files added since indexing are not reported; they carry no recorded time.
    """
    stale: list[str] = []
    for rel_path, recorded in sorted(index.source_files.items()):
        live = root / rel_path
        try:
            current = file_mtime(live)
        except FileNotFoundError:
            stale.append(rel_path)
            continue
        if current != recorded:
            stale.append(rel_path)
    return stale
