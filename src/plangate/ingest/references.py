"""Reference placeholders: ``${type.name.attr}`` values known only after apply."""

import re
from typing import Any, Callable, Set

REFERENCE_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_-]*)\.([A-Za-z_][A-Za-z0-9_-]*)\.([A-Za-z0-9_.-]+)\}")


def find_references(value: Any) -> Set[str]:
    """Return every resource address referenced anywhere inside *value*."""
    found: Set[str] = set()

    def walk(item: Any) -> None:
        if isinstance(item, str):
            for match in REFERENCE_PATTERN.finditer(item):
                found.add(f"{match.group(1)}.{match.group(2)}")
        elif isinstance(item, dict):
            for nested in item.values():
                walk(nested)
        elif isinstance(item, (list, tuple)):
            for nested in item:
                walk(nested)

    walk(value)
    return found


def is_placeholder(value: Any) -> bool:
    """True for strings whose value cannot be known until apply."""
    return isinstance(value, str) and REFERENCE_PATTERN.search(value) is not None


def resolve_references(value: Any, lookup: Callable[[str, str], Any]) -> Any:
    """
    Replace placeholders in *value* using ``lookup(address, attribute)``.

    A string made of a single reference takes the raw looked-up value, so
    non-string attributes survive. Interpolated strings get text.
    """
    if isinstance(value, str):
        whole = REFERENCE_PATTERN.fullmatch(value)
        if whole:
            return lookup(f"{whole.group(1)}.{whole.group(2)}", whole.group(3))
        return REFERENCE_PATTERN.sub(
            lambda m: str(lookup(f"{m.group(1)}.{m.group(2)}", m.group(3))),
            value,
        )
    if isinstance(value, dict):
        return {key: resolve_references(nested, lookup) for key, nested in value.items()}
    if isinstance(value, list):
        return [resolve_references(nested, lookup) for nested in value]
    return value
