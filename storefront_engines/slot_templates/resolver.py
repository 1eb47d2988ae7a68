"""Dotted-path lookup and display formatting for template variables.

Values are read from the per-render variable context exactly as the context
builder produced them. Display formatting is never re-derived here: when the
producer shipped a ``<field>_formatted`` companion, that string wins.
"""
from __future__ import annotations

import re
from typing import Any, List, Mapping, Optional, Sequence, Tuple

FORMATTED_SUFFIX = "_formatted"

_BRACKET_INDEX = re.compile(r"^(.*?)\[(\d+)\]$")


def split_path(path: str) -> List[str]:
    """Split ``product.images[0].url`` / ``images.[0]`` into lookup segments."""
    segments: List[str] = []
    for part in path.strip().split("."):
        if not part:
            continue
        match = _BRACKET_INDEX.match(part)
        if match:
            prefix, index = match.groups()
            if prefix:
                segments.append(prefix)
            segments.append(index)
        else:
            segments.append(part)
    return segments


def _step(current: Any, key: str) -> Any:
    if current is None:
        return None
    if isinstance(current, Mapping):
        return current.get(key)
    if isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
        if key.isdigit():
            index = int(key)
            return current[index] if index < len(current) else None
        if key == "length":
            return len(current)
        return None
    return None


def _walk(root: Any, segments: Sequence[str]) -> Any:
    current = root
    for key in segments:
        current = _step(current, key)
        if current is None:
            return None
    return current


def resolve(path: str, context: Mapping[str, Any]) -> Any:
    """Return the value at ``path`` inside ``context`` or None on any miss."""
    if not path or not isinstance(path, str):
        return None
    segments = split_path(path)
    if not segments:
        return None

    if segments[0] == "this" and len(segments) > 1:
        loop_item = context.get("this")
        if loop_item is not None:
            value = _walk(loop_item, segments[1:])
            if value is not None:
                return value
        # loop item keys are also layered at the top of the scope
        return _walk(context, segments[1:])

    return _walk(context, segments)


def _parent_of(path: str, context: Mapping[str, Any]) -> Tuple[Optional[Any], Optional[str]]:
    segments = split_path(path)
    if not segments:
        return None, None
    leaf = segments[-1]
    if len(segments) == 1:
        return context, leaf
    parent = resolve(".".join(segments[:-1]), context)
    return parent, leaf


def preformatted(path: str, context: Mapping[str, Any]) -> Optional[str]:
    """Return the producer-supplied ``<leaf>_formatted`` string next to ``path``."""
    parent, leaf = _parent_of(path, context)
    if not isinstance(parent, Mapping) or not leaf or leaf.endswith(FORMATTED_SUFFIX):
        return None
    candidate = parent.get(f"{leaf}{FORMATTED_SUFFIX}")
    if isinstance(candidate, str) and candidate:
        return candidate
    return None


def _scalar_to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (str, int, float)):
        return str(value)
    return ""


def format_value(value: Any, path: str, context: Mapping[str, Any]) -> str:
    """Render a resolved value as display text; never returns "None"."""
    annotated = preformatted(path, context)
    if annotated is not None:
        return annotated
    if isinstance(value, Mapping):
        return ""
    if isinstance(value, (list, tuple)):
        parts = [_scalar_to_str(item) for item in value if not isinstance(item, (Mapping, list, tuple))]
        return ", ".join(part for part in parts if part)
    return _scalar_to_str(value)
