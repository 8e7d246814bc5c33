"""Parsing of directive lines in data-driven test files."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Tuple

_log = logging.getLogger(__name__)

_DIRECTIVE_RE = re.compile(
    r"^ *[-a-zA-Z0-9/_,.]+(|=[-a-zA-Z0-9_@=+/,.]*|=\([^)]*\))(?: |\Z)"
)


class DirectiveError(ValueError):
    """A test file could not be parsed."""


@dataclass(repr=False)
class CmdArg:
    """An argument on a directive line.

    Accepted forms: ``key``, ``key=``, ``key=()``, ``key=a``, ``key=a,b,c``
    (one value) and ``key=(a,b,c)`` (several values).
    """

    key: str
    vals: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        if not self.vals:
            return self.key
        if len(self.vals) == 1:
            return f"{self.key}={self.vals[0]}"
        return f"{self.key}=({','.join(self.vals)})"

    __repr__ = __str__


@dataclass
class TestData:
    """One test case read from a data-driven test file."""

    __test__ = False

    pos: str = ""
    cmd: str = ""
    cmd_args: List[CmdArg] = field(default_factory=list)
    input: str = ""
    expected: str = ""

    def contains_key(self, key: str) -> bool:
        """Whether an argument with the given key is present."""
        return any(arg.key == key for arg in self.cmd_args)


def split_directives(line: str) -> List[str]:
    """Split a directive line into its command and argument tokens."""
    fields = []
    rest = line
    while rest:
        match = _DIRECTIVE_RE.match(rest)
        if match is None:
            column = len(line) - len(rest) + 1
            raise DirectiveError(f"cannot parse directive at column {column}: {line}")
        token = match.group(0)
        fields.append(token.strip())
        rest = rest[len(token):]
    return fields


def parse_line(line: str) -> Tuple[str, List[CmdArg]]:
    """Parse a directive line into its command and arguments."""
    _log.debug("line passed to split_directives: %r", line)
    fields = split_directives(line)
    if not fields:
        return "", []
    _log.debug("arguments after split: %r", fields)

    cmd, *tokens = fields
    args = []
    for token in tokens:
        key, sep, val = token.partition("=")
        if not sep:
            args.append(CmdArg(key))
        elif val.startswith("(") and val.endswith(")"):
            args.append(CmdArg(key, [v.strip() for v in val[1:-1].split(",")]))
        else:
            args.append(CmdArg(key, [val]))
    return cmd, args