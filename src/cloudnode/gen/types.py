"""Translate schema type expressions into Python annotations.

Schema types are written TypeScript-style (`string | null`, `Project[]`,
`Record<string, number>`, `"current"`, `Error & {code: "CONFLICT"}`).
"""

import json
import re

PRIMITIVES = {
    "string": "str",
    "number": "float",
    "boolean": "bool",
    "any": "Any",
    "unknown": "Any",
    "object": "dict[str, Any]",
    "void": "None",
    "undefined": "None",
    "null": "None",
    "Date": "datetime",
    "true": "Literal[True]",
    "false": "Literal[False]",
}

_GENERIC = re.compile(r"([A-Za-z_$][\w$.]*)<(.*)>", re.DOTALL)
_NUMBER = re.compile(r"-?\d+(\.\d+)?")
_OPENERS = "(<[{"
_CLOSERS = ")>]}"


def split_top_level(expr: str, sep: str) -> list[str]:
    """Split on `sep` where it is not nested in brackets or quotes."""
    parts = []
    depth = 0
    quote = None
    start = 0
    for i, ch in enumerate(expr):
        if quote:
            if ch == quote:
                quote = None
        elif ch in "\"'`":
            quote = ch
        elif ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth -= 1
        elif ch == sep and depth == 0:
            parts.append(expr[start:i].strip())
            start = i + 1
    parts.append(expr[start:].strip())
    return parts


def _is_wrapped(expr: str) -> bool:
    """True if the whole expression is one parenthesised group."""
    if not (expr.startswith("(") and expr.endswith(")")):
        return False
    depth = 0
    for i, ch in enumerate(expr):
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth -= 1
            if depth == 0 and i != len(expr) - 1:
                return False
    return True


def map_py_type(expr: str) -> str:
    """Map one schema type expression to a Python annotation string."""
    expr = expr.strip()
    if not expr:
        return "Any"

    members = split_top_level(expr, "|")
    if len(members) > 1:
        return _union([map_py_type(m) for m in members])

    members = split_top_level(expr, "&")
    if len(members) > 1:
        return map_py_type(members[0])

    if _is_wrapped(expr):
        return map_py_type(expr[1:-1])
    if expr.endswith("[]"):
        return f"list[{map_py_type(expr[:-2])}]"
    if expr.startswith("{"):
        return "dict[str, Any]"
    if expr[0] in "\"'`":
        return f"Literal[{json.dumps(expr[1:-1])}]"
    if _NUMBER.fullmatch(expr):
        return f"Literal[{expr}]"

    match = _GENERIC.fullmatch(expr)
    if match:
        return _generic(match.group(1), split_top_level(match.group(2), ","))

    if expr in PRIMITIVES:
        return PRIMITIVES[expr]
    # model reference, possibly namespaced (`Cloudnode.Project`)
    return expr.split(".")[-1]


def _generic(name: str, args: list[str]) -> str:
    name = name.split(".")[-1]
    if name == "Record" and len(args) == 2:
        return f"dict[{map_py_type(args[0])}, {map_py_type(args[1])}]"
    if name == "Array" and len(args) == 1:
        return f"list[{map_py_type(args[0])}]"
    if name == "Set" and len(args) == 1:
        return f"set[{map_py_type(args[0])}]"
    if name in ("Partial", "Readonly", "Promise") and len(args) == 1:
        return map_py_type(args[0])
    return f"{name}[{', '.join(map_py_type(a) for a in args)}]"


def _union(mapped: list[str]) -> str:
    """Join union members, merging literal members into one `Literal[...]`."""
    literals = [m[len("Literal["):-1] for m in mapped if m.startswith("Literal[")]
    result = []
    for m in mapped:
        if m.startswith("Literal["):
            if literals:
                result.append(f"Literal[{', '.join(literals)}]")
                literals = []
        elif m not in result:
            result.append(m)
    if "None" in result:
        result.remove("None")
        result.append("None")
    return " | ".join(result)
