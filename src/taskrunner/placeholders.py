# placeholders.py
# Resolves ${dotted.path} references inside task params against the
# configuration document.
#
# The document is JSON, so it is a tree: a value can never contain itself,
# and a single structural recursion always terminates.
#
# Non-string values are substituted as their JSON text: `true`, `null`,
# `1.0`, `[1, 2]`. This differs from a JavaScript-style String(value),
# which would give `1` and `1,2`.

from __future__ import annotations

import json
import re
from typing import Any, Mapping, Tuple

PLACEHOLDER = re.compile(r"\$\{(.+?)\}")

_MISSING = object()


def lookup(path: str, root: Any) -> Tuple[bool, Any]:
    """
    Walk `root` following the dot-separated `path`.

    Returns (found, value). A decimal segment indexes into a list; any
    absent key or out-of-range index means "not found".
    """
    node = root
    for key in path.split("."):
        if isinstance(node, Mapping):
            node = node.get(key, _MISSING)
        elif isinstance(node, list) and key.isdecimal():
            idx = int(key)
            node = node[idx] if idx < len(node) else _MISSING
        else:
            node = _MISSING

        if node is _MISSING:
            return False, None

    return True, node


def to_text(value: Any) -> str:
    """Textual form of a looked-up value: strings verbatim, everything else as JSON."""
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return str(value)


def resolve_string(text: str, root: Any) -> str:
    def _sub(match: re.Match) -> str:
        found, value = lookup(match.group(1), root)
        # unresolved references stay visible
        return to_text(value) if found else match.group(0)

    return PLACEHOLDER.sub(_sub, text)


def resolve(value: Any, root: Any) -> Any:
    """
    Return a copy of `value` with every placeholder substituted.

    Strings are scanned once, so text produced by a substitution is never
    resolved again. Lists keep their order and length, mappings keep their
    keys, and every other type is returned as-is. `value` is not modified.
    """
    if isinstance(value, str):
        return resolve_string(value, root)
    if isinstance(value, list):
        return [resolve(item, root) for item in value]
    if isinstance(value, tuple):
        return tuple(resolve(item, root) for item in value)
    if isinstance(value, Mapping):
        return {key: resolve(item, root) for key, item in value.items()}
    return value
