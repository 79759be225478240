"""Evaluate status path expressions against Kubernetes objects.

Supports the JSONPath subset used to address object status:

- ``$`` root, ``.key`` and ``['key']`` member access
- ``[0]`` index, ``[*]`` wildcard
- ``[?(@.field=="value")]`` and ``!=`` filters

Wildcards and filters select the first match, mirroring ``kubectl get
-o jsonpath`` on a single condition.
"""

import re
from typing import Any

_TOKEN = re.compile(
    r"""
    \.(?P<member>[A-Za-z0-9_\-]+)
    | \[\s*'(?P<quoted>[^']*)'\s*\]
    | \[\s*"(?P<dquoted>[^"]*)"\s*\]
    | \[\s*(?P<index>-?\d+)\s*\]
    | \[\s*(?P<wildcard>\*)\s*\]
    | \[\s*\?\(\s*@\.(?P<field>[A-Za-z0-9_.\-]+)\s*(?P<op>==|!=)\s*
        (?:"(?P<fdq>[^"]*)"|'(?P<fsq>[^']*)'|(?P<fraw>[^)\s]+))\s*\)\s*\]
    """,
    re.VERBOSE,
)


class StatusPathError(ValueError):
    """Raised when a path expression cannot be parsed."""

    pass


class StatusPathNotFound(LookupError):
    """Raised when a path selects nothing in the document."""

    pass


def parse(path: str) -> list[tuple[str, Any]]:
    """Parse a path expression into (kind, argument) steps.

    Raises:
        StatusPathError: If the expression is malformed
    """
    expr = path.strip()
    if expr.startswith("$"):
        expr = expr[1:]
    elif expr and not expr.startswith((".", "[")):
        expr = "." + expr

    steps: list[tuple[str, Any]] = []
    pos = 0
    while pos < len(expr):
        match = _TOKEN.match(expr, pos)
        if not match:
            raise StatusPathError(f"Invalid status path {path!r} near {expr[pos:]!r}")
        groups = match.groupdict()
        if groups["member"] is not None:
            steps.append(("key", groups["member"]))
        elif groups["quoted"] is not None:
            steps.append(("key", groups["quoted"]))
        elif groups["dquoted"] is not None:
            steps.append(("key", groups["dquoted"]))
        elif groups["index"] is not None:
            steps.append(("index", int(groups["index"])))
        elif groups["wildcard"] is not None:
            steps.append(("wildcard", None))
        else:
            literal = next(
                value for value in (groups["fdq"], groups["fsq"], groups["fraw"]) if value is not None
            )
            steps.append(("filter", (groups["field"].split("."), groups["op"], literal)))
        pos = match.end()
    return steps


def _field(item: Any, keys: list[str]) -> Any:
    for key in keys:
        if not isinstance(item, dict) or key not in item:
            return None
        item = item[key]
    return item


def _matches(item: Any, keys: list[str], op: str, literal: str) -> bool:
    value = _field(item, keys)
    text = None if value is None else str(value)
    if isinstance(value, bool):
        text = str(value).lower()
    return text == literal if op == "==" else text != literal


def extract(document: Any, path: str) -> Any:
    """Return the value at ``path`` inside ``document``.

    Raises:
        StatusPathError: If the expression is malformed
        StatusPathNotFound: If nothing matches
    """
    current = document
    for kind, arg in parse(path):
        if kind == "key":
            if not isinstance(current, dict) or arg not in current:
                raise StatusPathNotFound(f"{path}: key {arg!r} not found")
            current = current[arg]
        elif kind == "index":
            if not isinstance(current, list) or not -len(current) <= arg < len(current):
                raise StatusPathNotFound(f"{path}: index {arg} out of range")
            current = current[arg]
        elif kind == "wildcard":
            items = list(current.values()) if isinstance(current, dict) else current
            if not isinstance(items, list) or not items:
                raise StatusPathNotFound(f"{path}: nothing to expand")
            current = items[0]
        else:
            keys, op, literal = arg
            items = current if isinstance(current, list) else []
            selected = [item for item in items if _matches(item, keys, op, literal)]
            if not selected:
                raise StatusPathNotFound(f"{path}: no element matches the filter")
            current = selected[0]
    return current
