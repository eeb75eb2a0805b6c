"""
Field Path Addressing
=====================

Parses dot-and-bracket field paths (``comments[2].content``,
``attributes.withKids``) into a sequence of tagged keys and reads/writes
values at those paths inside an arbitrary nested structure.

Containers understood:
- ``MutableMapping`` (dicts): addressed by string key
- ``list``: addressed by non-negative integer index
- pydantic ``BaseModel``: addressed by declared field name or extra key
  (models with ``extra="allow"`` accept new keys; frozen models are read-only)

Writes create missing intermediate containers: a list when the *next* key is
an index, a dict otherwise.
"""

import re
from dataclasses import dataclass
from typing import Any, List, MutableMapping, Sequence, Union

from pydantic import BaseModel


# ============================================================================
# EXCEPTIONS
# ============================================================================

class FieldPathError(Exception):
    """Base exception for field path errors"""
    pass


class InvalidPathError(FieldPathError):
    """Raised when a path string is empty or malformed"""
    pass


class PathConflictError(FieldPathError):
    """Raised when a write traverses a value that is not a container"""
    pass


# ============================================================================
# KEYS
# ============================================================================

@dataclass(frozen=True)
class FieldKey:
    """Object-member key (``.name``)"""
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class IndexKey:
    """Array-index key (``[n]``)"""
    index: int

    def __str__(self) -> str:
        return str(self.index)


PathKey = Union[FieldKey, IndexKey]

_BRACKET_SEGMENT = re.compile(r"\[(\w+)\]")
_UNSIGNED_INT = re.compile(r"^[0-9]+$")

_MISSING = object()


def parse(path: str) -> List[PathKey]:
    """
    Parse a field path into tagged keys.

    ``[x]`` segments are rewritten to ``.x`` before splitting on ``.``; a
    segment made only of digits becomes an ``IndexKey``.

    Raises:
        InvalidPathError: empty path or empty segment (``a..b``, ``.a``)
    """
    if not isinstance(path, str) or not path.strip():
        raise InvalidPathError(f"Field path must be a non-empty string, got {path!r}")

    segments = _BRACKET_SEGMENT.sub(r".\1", path.strip()).split(".")
    keys: List[PathKey] = []

    for segment in segments:
        if not segment:
            raise InvalidPathError(f"Malformed field path (empty segment): {path!r}")
        if _UNSIGNED_INT.match(segment):
            keys.append(IndexKey(int(segment)))
        else:
            keys.append(FieldKey(segment))

    return keys


def format_path(keys: Sequence[PathKey]) -> str:
    """Render keys back to canonical ``a[0].b`` form."""
    rendered = ""
    for key in keys:
        if isinstance(key, IndexKey):
            rendered += f"[{key.index}]"
        else:
            rendered += f".{key.name}" if rendered else key.name
    return rendered


def is_valid(path: str) -> bool:
    try:
        parse(path)
    except InvalidPathError:
        return False
    return True


# ============================================================================
# CONTAINER ACCESS
# ============================================================================

def _is_container(value: Any) -> bool:
    return isinstance(value, (MutableMapping, list, BaseModel))


def _read(container: Any, key: PathKey) -> Any:
    """Read one level; ``_MISSING`` when absent or not addressable."""
    if isinstance(container, list):
        if isinstance(key, IndexKey) and key.index < len(container):
            return container[key.index]
        return _MISSING

    if isinstance(container, MutableMapping):
        return container.get(str(key), _MISSING)

    if isinstance(container, BaseModel):
        if isinstance(key, IndexKey):
            return _MISSING
        if key.name in type(container).model_fields:
            return getattr(container, key.name)
        return (container.__pydantic_extra__ or {}).get(key.name, _MISSING)

    return _MISSING


def _write(container: Any, key: PathKey, value: Any) -> None:
    """Write one level; lists grow (padded with None) to reach the index."""
    if isinstance(container, list):
        if not isinstance(key, IndexKey):
            raise PathConflictError(f"Cannot address a list with field key '{key}'")
        if key.index >= len(container):
            container.extend([None] * (key.index + 1 - len(container)))
        container[key.index] = value
        return

    if isinstance(container, MutableMapping):
        container[str(key)] = value
        return

    if isinstance(container, BaseModel):
        if isinstance(key, IndexKey):
            raise PathConflictError(f"Cannot address a {type(container).__name__} with index [{key.index}]")
        if container.model_config.get("frozen"):
            raise PathConflictError(f"{type(container).__name__} is immutable")
        if key.name in type(container).model_fields:
            setattr(container, key.name, value)
        elif container.__pydantic_extra__ is not None:
            container.__pydantic_extra__[key.name] = value
        else:
            raise PathConflictError(f"{type(container).__name__} has no field '{key.name}'")
        return

    raise PathConflictError(
        f"Cannot write key '{key}' into non-container value of type {type(container).__name__}"
    )


# ============================================================================
# PUBLIC API
# ============================================================================

def get(root: Any, path: Union[str, Sequence[PathKey]], default: Any = None) -> Any:
    """
    Read the value at ``path``.

    Returns ``default`` as soon as any step is missing, ``None``, out of
    range or not indexable. Never raises for missing data.
    """
    keys = parse(path) if isinstance(path, str) else list(path)
    current = root

    for key in keys:
        if current is None:
            return default
        current = _read(current, key)
        if current is _MISSING:
            return default

    return current


def set(root: Any, path: Union[str, Sequence[PathKey]], value: Any) -> Any:
    """
    Assign ``value`` at ``path`` (in place) and return ``root``.

    Missing or ``None`` intermediates are created: ``[]`` when the following
    key is an index, ``{}`` otherwise.

    Raises:
        InvalidPathError: malformed path
        PathConflictError: an intermediate (or the root) is not a container
    """
    keys = parse(path) if isinstance(path, str) else list(path)
    if not _is_container(root):
        raise PathConflictError(f"Root of type {type(root).__name__} is not a container")

    current = root
    for position, key in enumerate(keys[:-1]):
        child = _read(current, key)

        if child is _MISSING or child is None:
            child = [] if isinstance(keys[position + 1], IndexKey) else {}
            _write(current, key, child)
        elif not _is_container(child):
            raise PathConflictError(
                f"'{format_path(keys[:position + 1])}' holds a {type(child).__name__}, "
                f"cannot traverse into it"
            )

        current = child

    _write(current, keys[-1], value)
    return root
