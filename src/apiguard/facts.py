"""
Usage fact stream readers for apiguard.

The upstream language front-end resolves every symbol reference to its
canonical path and writes one record per reference. This module turns
those records into UsageEvents, lazily, without interpreting them further.

Record shapes (either is accepted):
    {"kind": "macro", "path": "std::print", "file": "src/lib.rs", "line": 3, "column": 5}
    {"kind": "macro", "path": "std::print", "location": {"file": "src/lib.rs", "line": 3}}

File formats:
    - JSON Lines (.jsonl, .ndjson): one record per line, blank lines skipped
    - JSON (.json): an array of records
    - YAML (.yaml, .yml): a list of records

A record with an unknown kind is valid; the matcher treats it as a miss.
A record missing its path or location raises FactStreamError, as does a
file that cannot be read or is not valid UTF-8. Errors carry the 1-based
record index, and the line number for JSON Lines files.
"""

import json
import logging
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from apiguard.errors import FactStreamError
from apiguard.schema import UsageEvent

logger = logging.getLogger(__name__)

_LOCATION_KEYS = ("file", "line", "column")


def _normalize_record(record: Mapping[str, Any]) -> dict[str, Any]:
    """Fold flat file/line/column keys into a nested location."""
    data = dict(record)
    if "location" not in data and any(key in data for key in _LOCATION_KEYS):
        data["location"] = {key: data.pop(key) for key in _LOCATION_KEYS if key in data}
    return data


def parse_usage_record(
    record: Any,
    source: str = "<memory>",
    index: int | None = None,
    line: int | None = None,
) -> UsageEvent:
    """
    Validate a single usage record.

    Args:
        record: Decoded record (a mapping)
        source: Where the record came from, for error messages
        index: 1-based position of the record in its source
        line: 1-based line number, for line-oriented sources

    Raises:
        FactStreamError: If the record is not a valid usage event
    """
    if isinstance(record, UsageEvent):
        return record
    if not isinstance(record, Mapping):
        raise FactStreamError(
            source=source,
            index=index,
            line=line,
            underlying_error=f"expected an object, got {type(record).__name__}",
        )
    try:
        return UsageEvent.model_validate(_normalize_record(record))
    except ValidationError as e:
        raise FactStreamError(
            source=source,
            index=index,
            line=line,
            underlying_error="; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            ),
        ) from e


def iter_usage_events(records: Iterable[Any], source: str = "<memory>") -> Iterator[UsageEvent]:
    """Lazily validate in-memory records into UsageEvents."""
    for index, record in enumerate(records, start=1):
        yield parse_usage_record(record, source, index)


def _iter_jsonl(path: Path) -> Iterator[UsageEvent]:
    index = 0
    try:
        with path.open(encoding="utf-8") as f:
            for lineno, raw in enumerate(f, start=1):
                raw = raw.strip()
                if not raw:
                    continue
                index += 1
                try:
                    record = json.loads(raw)
                except json.JSONDecodeError as e:
                    raise FactStreamError(
                        source=str(path), index=index, line=lineno, underlying_error=str(e),
                    ) from e
                yield parse_usage_record(record, str(path), index, lineno)
    except (OSError, UnicodeDecodeError) as e:
        raise FactStreamError(source=str(path), underlying_error=str(e)) from e


def _load_document(path: Path, fmt: str) -> list[Any]:
    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f) if fmt == "json" else yaml.safe_load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise FactStreamError(source=str(path), underlying_error=str(e)) from e

    if data is None:
        return []
    if not isinstance(data, list):
        raise FactStreamError(
            source=str(path),
            underlying_error=f"expected a list of records, got {type(data).__name__}",
        )
    return data


def read_usage_events(path: Path | str) -> Iterator[UsageEvent]:
    """
    Lazily read usage events from a front-end output file.

    Nothing is read until the iterator is consumed. JSON Lines files are
    streamed line by line; JSON and YAML documents are decoded whole.

    Args:
        path: Path to the fact file

    Yields:
        UsageEvent for each record, in file order

    Raises:
        FactStreamError: If the file cannot be read or decoded, or a record is malformed
    """
    path = Path(path)
    suffix = path.suffix.lower()
    logger.debug("Reading usage facts from %s", path)

    if suffix == ".json":
        yield from iter_usage_events(_load_document(path, "json"), str(path))
    elif suffix in (".yaml", ".yml"):
        yield from iter_usage_events(_load_document(path, "yaml"), str(path))
    else:
        yield from _iter_jsonl(path)


def split_by_file(events: Iterable[UsageEvent]) -> dict[str, list[UsageEvent]]:
    """
    Group a stream into per-file units for parallel scanning.

    Files appear in first-seen order and events keep their stream order
    within a file.
    """
    units: dict[str, list[UsageEvent]] = {}
    for event in events:
        units.setdefault(event.location.file, []).append(event)
    return units
