"""
Name Decoration Policies
=========================

The export table stores names only, with no types.  The one crude signal
about parameters is the legacy ``__stdcall`` decoration, where the linker
appends ``@<n>`` with the total argument size in bytes (``_Sleep@4``).

A policy maps an export name to placeholder parameter types.  The default
:func:`at_sign_policy` marks any ``@``-decorated name as taking exactly one
parameter of unknown type.  This is a best-effort hint for display, never
an accurate parameter count or type list.

References:
    - Microsoft. (2024). Decorated names. Microsoft Learn.
      https://learn.microsoft.com/en-us/cpp/build/reference/decorated-names
"""

from __future__ import annotations

import re
from typing import Callable, Optional

from ordinal.core.models import UNKNOWN_TYPE

DecorationPolicy = Callable[[str], "tuple[str, ...]"]

_STDCALL_SUFFIX = re.compile(r"@(\d+)$")


def at_sign_policy(name: str) -> tuple[str, ...]:
    """One ``"unknown"`` parameter for any name containing ``@``.

    Covers the trailing ``@<digits>`` stdcall form as well as C++ mangled
    names (``?Fn@@YAXXZ``), which also contain ``@``.
    """
    if "@" in name:
        return (UNKNOWN_TYPE,)
    return ()


def no_decoration_policy(name: str) -> tuple[str, ...]:
    """Never infer parameters from the name."""
    return ()


def stdcall_argument_bytes(name: str) -> Optional[int]:
    """Return the argument byte count of a ``name@<n>`` decoration.

    >>> stdcall_argument_bytes("_Sleep@4")
    4
    >>> stdcall_argument_bytes("Sleep") is None
    True
    """
    match = _STDCALL_SUFFIX.search(name)
    if match is None:
        return None
    return int(match.group(1))


def policy_for(enabled: bool) -> DecorationPolicy:
    """Select the policy named by the ``decoration_heuristic`` setting."""
    return at_sign_policy if enabled else no_decoration_policy
