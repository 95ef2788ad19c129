"""Helpers for inspecting decoded JSON bodies."""

from __future__ import annotations

import json
from typing import Any, Iterable, List, Mapping

from http_expectations.exceptions import ExpectationFailedError

MISSING = object()


def _segments(path: str | Iterable[str]) -> List[str]:
    if isinstance(path, str):
        return path.split(".") if path else []
    return [str(p) for p in path]


def _step(data: Any, segment: str) -> Any:
    if isinstance(data, Mapping):
        return data.get(segment, MISSING)
    if isinstance(data, (list, tuple)):
        try:
            index = int(segment)
        except ValueError:
            return MISSING
        if -len(data) <= index < len(data):
            return data[index]
    return MISSING


def _get(data: Any, segments: List[str]) -> Any:
    for position, segment in enumerate(segments):
        if segment == "*":
            if isinstance(data, Mapping):
                items = list(data.values())
            elif isinstance(data, (list, tuple)):
                items = list(data)
            else:
                return MISSING

            rest = segments[position + 1 :]
            results = [_get(item, rest) for item in items]
            results = [r for r in results if r is not MISSING]

            # Nested wildcards collapse into a single flat list
            if "*" in rest:
                flat: List[Any] = []
                for r in results:
                    flat.extend(r if isinstance(r, list) else [r])
                return flat
            return results

        data = _step(data, segment)
        if data is MISSING:
            return MISSING
    return data


def data_get(data: Any, path: str | Iterable[str] | None, default: Any = None) -> Any:
    """
    Read a value using dot notation.

    Integer segments index into lists and ``*`` maps the remaining path over
    every item of a list or object.

    Args:
        data: Decoded JSON (or any nested mapping/list structure).
        path: Dotted path such as ``"data.0.id"`` or ``"data.*.id"``. ``None``
            or ``""`` returns ``data`` itself.
        default: Returned when the path does not exist.
    """
    if path is None:
        return data
    value = _get(data, _segments(path))
    return default if value is MISSING else value


def data_has(data: Any, path: str) -> bool:
    """Return whether ``path`` exists in ``data``."""
    return _get(data, _segments(path)) is not MISSING


def is_identical(expected: Any, actual: Any) -> bool:
    """Equality that also requires matching types (``1`` is not ``True`` or ``1.0``)."""
    if type(expected) is not type(actual):
        if not (isinstance(expected, (list, tuple)) and isinstance(actual, (list, tuple))):
            return False
    if isinstance(expected, Mapping):
        if set(expected) != set(actual):
            return False
        return all(is_identical(expected[k], actual[k]) for k in expected)
    if isinstance(expected, (list, tuple)):
        if len(expected) != len(actual):
            return False
        return all(is_identical(e, a) for e, a in zip(expected, actual))
    return expected == actual


def is_subset(subset: Any, data: Any, strict: bool = False) -> bool:
    """
    Check that ``data`` contains everything in ``subset``.

    Objects are matched by key and lists by index, recursively. Scalars are
    compared with ``==``, or with :func:`is_identical` when ``strict``.
    """
    if isinstance(subset, Mapping):
        if not isinstance(data, Mapping):
            return False
        for key, value in subset.items():
            if key not in data:
                return False
            if not is_subset(value, data[key], strict):
                return False
        return True

    if isinstance(subset, (list, tuple)):
        if not isinstance(data, (list, tuple)) or len(subset) > len(data):
            return False
        return all(is_subset(s, d, strict) for s, d in zip(subset, data))

    if strict:
        return is_identical(subset, data)
    return subset == data


def _objects(data: Any) -> Iterable[Mapping]:
    if isinstance(data, Mapping):
        yield data
        for value in data.values():
            yield from _objects(value)
    elif isinstance(data, (list, tuple)):
        for item in data:
            yield from _objects(item)


def contains_fragment(data: Any, fragment: Mapping[str, Any]) -> bool:
    """Every key/value pair of ``fragment`` appears in some object within ``data``."""
    objects = list(_objects(data))
    for key, value in fragment.items():
        if not any(key in obj and obj[key] == value for obj in objects):
            return False
    return True


def assert_structure(structure: Any, data: Any, path: str = "") -> None:
    """
    Assert that ``data`` has the keys described by ``structure``.

    ``structure`` is either a list of keys (strings, or nested mappings of
    key to sub-structure) or a mapping of key to sub-structure. The key
    ``"*"`` applies its sub-structure to every item of ``data``.

    Raises:
        ExpectationFailedError: If a key is missing.
    """
    if isinstance(structure, Mapping):
        entries = list(structure.items())
    else:
        entries = []
        for item in structure:
            if isinstance(item, Mapping):
                entries.extend(item.items())
            else:
                entries.append((item, None))

    for key, sub in entries:
        location = f"{path}.{key}" if path else str(key)

        if key == "*" and sub is not None:
            if not isinstance(data, (list, tuple, Mapping)):
                raise ExpectationFailedError(
                    f"Failed asserting that [{path or 'response'}] is an array.",
                    actual=data,
                )
            items = data.values() if isinstance(data, Mapping) else data
            for index, item in enumerate(items):
                assert_structure(sub, item, f"{path}.{index}" if path else str(index))
            continue

        if not isinstance(data, Mapping) or key not in data:
            available = sorted(data) if isinstance(data, Mapping) else []
            raise ExpectationFailedError(
                f"Failed asserting that the JSON has the key [{location}].",
                expected=key,
                actual=available,
            )

        if sub is not None:
            assert_structure(sub, data[key], location)


def dump(value: Any) -> str:
    """Pretty JSON for failure messages."""
    return json.dumps(value, indent=4, sort_keys=True, ensure_ascii=False, default=str)
