"""
Prototype Enrichment
=====================

Merges header prototypes into export-table results by exact name, so that
exports declared in a matching header report real return and parameter
types instead of ``"unknown"``.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from ordinal.core.models import ExportedFunction, Prototype


def enrich(
    functions: Iterable[ExportedFunction],
    prototypes: Mapping[str, Prototype],
) -> tuple[ExportedFunction, ...]:
    """Return *functions* with types taken from matching *prototypes*.

    Order is preserved.  Functions without a prototype are returned as-is;
    ordinal-only exports never match since they have no real name.
    """
    result: list[ExportedFunction] = []
    for function in functions:
        prototype = prototypes.get(function.name) if function.named else None
        if prototype is None:
            result.append(function)
            continue
        result.append(function.model_copy(update={
            "return_type": prototype.return_type,
            "param_types": prototype.param_types,
        }))
    return tuple(result)


def count_enriched(
    functions: Iterable[ExportedFunction],
    prototypes: Mapping[str, Prototype],
) -> int:
    """Number of named exports that have a prototype."""
    return sum(1 for f in functions if f.named and f.name in prototypes)
