"""Free-text filtering of exported functions."""

from __future__ import annotations

from typing import Iterable

from ordinal.core.models import ExportedFunction


def matches(function: ExportedFunction, text: str) -> bool:
    """Case-insensitive substring match on name, return type or any parameter type."""
    needle = text.strip().lower()
    if not needle:
        return True
    if needle in function.name.lower():
        return True
    if needle in function.return_type.lower():
        return True
    return any(needle in param.lower() for param in function.param_types)


def filter_functions(
    functions: Iterable[ExportedFunction], text: str | None
) -> tuple[ExportedFunction, ...]:
    """Keep the functions matching *text*; blank or ``None`` keeps all."""
    if text is None or not text.strip():
        return tuple(functions)
    return tuple(f for f in functions if matches(f, text))
