"""Decoding of bracketed form field names into nested mappings."""

from __future__ import annotations

import re

from werkzeug.datastructures import MultiDict

_SEGMENTS_RE = re.compile(r"\[([^\[\]]*)\]")
_SUFFIX_RE = re.compile(r"(?:\[[^\[\]]*\])+")
# Keys read as array indexes; longer digit runs stay plain string keys.
_INDEX_RE = re.compile(r"0|[1-9][0-9]{0,17}")


def _split_path(name: str, field: str) -> list[str] | None:
    if not name.startswith(field + "["):
        return None
    suffix = name[len(field):]
    if not _SUFFIX_RE.fullmatch(suffix):
        return None
    return _SEGMENTS_RE.findall(suffix)


def _next_index(container: dict) -> str:
    indexes = [int(key) for key in container if _INDEX_RE.fullmatch(key)]
    return str(max(indexes) + 1) if indexes else "0"


def parse_nested_form(form: MultiDict, field: str) -> dict:
    """Collect ``field[a][b]=v`` entries of ``form`` into ``{"a": {"b": v}}``.

    Empty brackets (``field[tags][]``) append after the largest numeric key
    already present, so repeated values end up keyed ``"0"``, ``"1"`` and so
    on, and an explicit ``field[tags][3]`` is never overwritten.  Later
    entries replace earlier ones at the same path.  Every leaf is a string.
    """
    result: dict = {}
    for name, value in form.items(multi=True):
        path = _split_path(name, field)
        if not path:
            continue

        container = result
        for position, segment in enumerate(path):
            key = segment if segment != "" else _next_index(container)
            if position == len(path) - 1:
                container[key] = value
                break
            child = container.get(key)
            if not isinstance(child, dict):
                child = {}
                container[key] = child
            container = child
    return result


__all__ = ["parse_nested_form"]
