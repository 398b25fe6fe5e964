"""
Call Snippets
==============

Builds a one-line call template for an exported function, suitable for
pasting into a script editor::

    [result=]Add(arg0 /*int*/, arg1 /*int*/); // int Add(int arg0, int arg1)
    [result=]_Sleep@4(arg0); // signature unknown: _Sleep@4
    Shutdown(); // void Shutdown()
"""

from __future__ import annotations

from ordinal.core.models import UNKNOWN_TYPE, ExportedFunction


def _known(type_name: str | None) -> bool:
    return bool(type_name) and type_name.lower() != UNKNOWN_TYPE


def make_snippet(function: ExportedFunction) -> str:
    """Return the call template for *function*.

    A ``[result=]`` prefix is added unless the return type is ``void``.
    An unknown return type still gets the prefix, since the call may well
    return something.
    """
    parts: list[str] = []
    return_type = function.return_type
    if return_type and return_type.lower() != "void":
        parts.append("[result=]")

    args: list[str] = []
    for index, param in enumerate(function.param_types):
        arg = f"arg{index}"
        if _known(param):
            arg += f" /*{param}*/"
        args.append(arg)
    parts.append(f"{function.name}({', '.join(args)});")

    if _known(return_type):
        declared = ", ".join(
            f"{param or UNKNOWN_TYPE} arg{index}"
            for index, param in enumerate(function.param_types)
        )
        parts.append(f" // {return_type} {function.name}({declared})")
    else:
        parts.append(f" // signature unknown: {function.name}")

    return "".join(parts)
