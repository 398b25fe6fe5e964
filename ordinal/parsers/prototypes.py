"""
C Header Prototype Parser
==========================

Heuristic extraction of plain function prototypes such as::

    int Add(int a, float b);
    void DoSomething(void);
    const char *GetName(HANDLE h);

The parser strips comments and preprocessor lines, then matches
``<type> <name>(<params>);``.  It does not understand macros, function
pointers, templates or C++ overloads; anything it cannot match is simply
absent from the result.  The output is meant to be merged by name with
the export table to replace ``"unknown"`` types.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from ordinal.core.models import UNKNOWN_TYPE, Prototype

logger = logging.getLogger(__name__)

_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT = re.compile(r"//[^\r\n]*")
# A directive line, including backslash continuations
_DIRECTIVE = re.compile(r"^[ \t]*#(?:[^\n]*\\\r?\n)*[^\n]*", re.MULTILINE)

# return type (1), function name (2), parameter list (3)
_PROTOTYPE = re.compile(
    r"([A-Za-z_*\s0-9]+?)(?:\s+|(?<=\*))([A-Za-z_][A-Za-z0-9_]*)\s*\(([^;)]*)\)\s*;",
    re.MULTILINE,
)

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_STARRED_NAME = re.compile(r"(\*+)[A-Za-z_][A-Za-z0-9_]*(?:\[[^\]]*\])?")
_WHITESPACE = re.compile(r"\s+")
_POINTER = re.compile(r"\s*(\*+)\s*")

_STATEMENT_KEYWORDS = frozenset({
    "return", "else", "case", "goto", "if", "while", "for", "switch",
    "sizeof", "do",
})

# Builtin type words; "unsigned int" is a type, not a type plus a name.
_TYPE_KEYWORDS = frozenset({
    "char", "short", "int", "long", "float", "double", "signed", "unsigned",
    "void", "const", "volatile",
})

_ENCODINGS: tuple[str, ...] = ("utf-8", "cp1252", "latin-1")


def strip_comments(source: str) -> str:
    """Replace block and line comments with a single space."""
    source = _BLOCK_COMMENT.sub(" ", source)
    return _LINE_COMMENT.sub(" ", source)


def strip_directives(source: str) -> str:
    """Blank out preprocessor lines (``#include``, ``#define`` ...)."""
    return _DIRECTIVE.sub("", source)


def normalize_type(raw: str) -> str:
    """Collapse whitespace and attach pointer stars as ``"char *"``."""
    text = _WHITESPACE.sub(" ", raw).strip()
    return _POINTER.sub(lambda m: f" {m.group(1)}", text).strip()


def _is_param_name(token: str) -> bool:
    if "*" in token or token in _TYPE_KEYWORDS:
        return False
    if token.startswith("[") or token.endswith("]"):
        return True
    return _IDENTIFIER.fullmatch(token) is not None


def parse_param_list(params: str) -> tuple[str, ...]:
    """Turn ``"const char *s, int n"`` into parameter types.

    A trailing identifier (or ``name[N]``) after at least one type token is
    taken to be the parameter name and dropped.  An empty slot, as in
    ``"int a, "``, is reported as ``"unknown"``.
    """
    params = params.strip()
    if not params or params.lower() == "void":
        return ()

    types: list[str] = []
    for part in params.split(","):
        tokens = part.split()
        if not tokens:
            types.append(UNKNOWN_TYPE)
            continue

        starred = _STARRED_NAME.fullmatch(tokens[-1]) if len(tokens) > 1 else None
        if len(tokens) > 1 and _is_param_name(tokens[-1]):
            types.append(normalize_type(" ".join(tokens[:-1])))
        elif starred is not None:
            # "char *name": the stars belong to the type
            types.append(normalize_type(" ".join(tokens[:-1]) + starred.group(1)))
        else:
            types.append(normalize_type(part))
    return tuple(types)


def parse_header_text(source: str) -> dict[str, Prototype]:
    """Extract prototypes from header source text.

    Returns:
        Mapping of function name to :class:`Prototype`, in source order.
        A later declaration of the same name replaces an earlier one.
    """
    prototypes: dict[str, Prototype] = {}
    for match in _PROTOTYPE.finditer(strip_directives(strip_comments(source))):
        raw_return, name, params = match.group(1), match.group(2), match.group(3)
        return_tokens = raw_return.split()
        if name in _STATEMENT_KEYWORDS or _STATEMENT_KEYWORDS.intersection(return_tokens):
            continue
        prototypes[name] = Prototype(
            return_type=normalize_type(raw_return),
            param_types=parse_param_list(params),
        )
    return prototypes


def read_header_source(path: str | Path) -> str:
    """Read a header file, falling back from UTF-8 to cp1252 to latin-1."""
    data = Path(path).read_bytes()
    for encoding in _ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            logger.debug("%s is not valid %s, trying next encoding", path, encoding)
    # latin-1 maps every byte, so the loop always returns.
    raise AssertionError("unreachable")


def parse_header_file(path: str | Path) -> dict[str, Prototype]:
    """Read and parse the C header at *path*.

    Raises:
        OSError: The file cannot be read.
    """
    prototypes = parse_header_text(read_header_source(path))
    logger.debug("%s: %d prototypes", path, len(prototypes))
    return prototypes
