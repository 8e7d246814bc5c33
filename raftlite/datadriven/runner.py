"""Running data-driven tests from text files."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Union

from .lineparser import DirectiveError, TestData, parse_line

_log = logging.getLogger(__name__)

_BLANK_LINE_RE = re.compile(r"^[\t ]*\n", re.MULTILINE)
_SEPARATOR = "----"

PathLike = Union[str, Path]
Handler = Callable[[TestData], str]


def _split_lines(content: str) -> List[str]:
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def has_blank_line(text: str) -> bool:
    """Whether the text contains an empty or whitespace-only line."""
    return _BLANK_LINE_RE.search(text) is not None


def collect_paths(path: PathLike) -> List[Path]:
    """The entries of a directory, or the path itself if it is not one."""
    p = Path(path)
    if p.is_dir():
        return sorted(p.iterdir())
    return [p]


class TestDataReader:
    """Reads test cases out of the text of a test file."""

    __test__ = False

    def __init__(self, source_name: PathLike, content: str, rewrite: bool = False):
        self.source_name = Path(source_name)
        self.data = TestData()
        self._lines = enumerate(_split_lines(content))
        self._buffer: Optional[List[str]] = [] if rewrite else None

    @property
    def rewrite_buffer(self) -> Optional[str]:
        """The rewritten file so far, or None when not rewriting."""
        return None if self._buffer is None else "".join(self._buffer)

    def emit(self, text: str) -> None:
        """Add a line to the rewrite buffer, if rewriting."""
        self._append(text + "\n")

    def _append(self, text: str) -> None:
        if self._buffer is not None:
            self._buffer.append(text)

    def _next_line(self) -> Optional[str]:
        item = next(self._lines, None)
        return None if item is None else item[1]

    def _require_line(self) -> str:
        line = self._next_line()
        if line is None:
            raise DirectiveError(
                f"{self.data.pos}: unterminated double {_SEPARATOR} separator section"
            )
        return line

    def __iter__(self) -> Iterator[TestData]:
        while True:
            item = next(self._lines, None)
            if item is None:
                return
            pos, raw = item
            self.emit(raw)
            line = raw.strip()
            if not line or line.startswith("#"):
                continue

            while line.endswith("\\"):
                line = line[:-1]
                following = self._next_line()
                if following is None:
                    raise DirectiveError("expect argument ends without '\\'")
                self.emit(following)
                following = following.strip()
                if following:
                    line += " " + following
                pos += 1

            _log.debug("directive after cleanup: %s", line)
            self.data = TestData(pos=f"{self.source_name} : L{pos + 1}")
            cmd, cmd_args = parse_line(line)
            if not cmd:
                raise DirectiveError("cmd must not be empty")
            self.data.cmd = cmd
            self.data.cmd_args = cmd_args

            input_lines = []
            separator = False
            while (text := self._next_line()) is not None:
                if text == _SEPARATOR:
                    separator = True
                    break
                self.emit(text)
                input_lines.append(text + "\n")
            self.data.input = "".join(input_lines).strip()

            if separator:
                self._read_expected()
            yield self.data

    def _read_expected(self) -> None:
        first = self._next_line()
        if first == _SEPARATOR:
            self._read_double_separated()
            return
        expected = []
        line = first or ""
        while line.strip():
            expected.append(line + "\n")
            next_line = self._next_line()
            if next_line is None:
                break
            line = next_line
        self.data.expected += "".join(expected)

    def _read_double_separated(self) -> None:
        expected = []
        while True:
            line = self._require_line()
            if line == _SEPARATOR:
                second = self._require_line()
                if second == _SEPARATOR:
                    trailing = self._next_line()
                    if trailing:
                        raise DirectiveError(
                            "non-blank line after end of double ---- separator section"
                        )
                    break
                expected.append(line + "\n")
                expected.append(second + "\n")
                continue
            expected.append(line + "\n")
        self.data.expected += "".join(expected)


def _run_directive(reader: TestDataReader, data: TestData, func: Handler) -> None:
    actual = func(data)
    if actual and not actual.endswith("\n"):
        actual += "\n"

    if reader.rewrite_buffer is None:
        if actual != data.expected:
            raise AssertionError(
                f"{data.pos}: expected {data.expected!r}, got {actual!r}"
            )
        return

    reader.emit(_SEPARATOR)
    if has_blank_line(actual):
        reader.emit(_SEPARATOR)
        reader._append(actual)
        reader.emit(_SEPARATOR)
        reader.emit(_SEPARATOR)
        reader.emit("")
    else:
        # actual already ends in a newline, so this leaves a blank line.
        reader.emit(actual)


def run_text(
    source_name: PathLike, content: str, func: Handler, rewrite: bool = False
) -> Optional[str]:
    """Run the test cases in ``content``.

    Raises AssertionError when an output differs from its expected value.
    When rewriting, returns the file text with the actual outputs instead.
    """
    reader = TestDataReader(source_name, content, rewrite)
    for data in reader:
        _run_directive(reader, data, func)
    result = reader.rewrite_buffer
    if result is not None and result.endswith("\n\n"):
        result = result[:-1]
    _log.debug("rewrite buffer: %r", result)
    return result


def run_test(path: PathLike, func: Handler, rewrite: bool = False) -> None:
    """Run the test file at ``path``, or every file in the directory at ``path``.

    In rewrite mode each file is overwritten with the actual outputs.
    """
    for file in collect_paths(path):
        with open(file, encoding="utf-8", newline="") as handle:
            content = handle.read()
        rewritten = run_text(file, content, func, rewrite)
        if rewritten is not None:
            with open(file, "w", encoding="utf-8", newline="") as handle:
                handle.write(rewritten)


def walk(path: PathLike, func: Callable[[Path], object]) -> None:
    """Call ``func`` on every file given by ``path``."""
    for file in collect_paths(path):
        func(file)