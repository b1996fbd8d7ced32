"""Line-oriented scanner for Python model source.

The scanner understands just enough of Python's lexical structure to find
class bodies and their statements: string literals (including triple-quoted
strings spanning lines), ``#`` comments, bracket nesting and indentation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

TAB_SIZE = 8
QUOTES = ('"""', "'''", '"', "'")
OPEN_BRACKETS = "([{"
CLOSE_BRACKETS = ")]}"

CLASS_PATTERN = re.compile(r"class\s+(\w+)\s*(?:\((.*)\))?\s*:", re.DOTALL)
ASSIGNMENT_PATTERN = re.compile(r"(\w+)\s*=(?!=)\s*(.+)", re.DOTALL)
DOCSTRING_PATTERN = re.compile(r"[rRuU]?(\"\"\"|'''|\"|')(.*)\1", re.DOTALL)
BLOCK_STARTS = ("class ", "def ")


class ScannedLine(NamedTuple):
    """One physical line with comments removed."""

    code: str
    depth: int
    open_string: str | None


class Statement(NamedTuple):
    """A logical line: a statement with its continuation lines joined."""

    line: int
    prefix: str
    text: str

    @property
    def indent(self) -> int:
        """Indentation column with tabs expanded."""
        return len(self.prefix.expandtabs(TAB_SIZE))


def scan_line(line: str, open_string: str | None = None) -> ScannedLine:
    """Strip a trailing comment and measure the change in bracket depth.

    ``open_string`` is the delimiter of a string literal left open by a
    previous line; the returned value carries the same state forward.
    """
    depth = 0
    index = 0
    while index < len(line):
        if open_string:
            if line[index] == "\\":
                index += 2
            elif line.startswith(open_string, index):
                index += len(open_string)
                open_string = None
            else:
                index += 1
            continue

        char = line[index]
        if char == "#":
            return ScannedLine(line[:index].rstrip(), depth, None)
        if char in "\"'":
            open_string = next(q for q in QUOTES if line.startswith(q, index))
            index += len(open_string)
            continue
        if char in OPEN_BRACKETS:
            depth += 1
        elif char in CLOSE_BRACKETS:
            depth -= 1
        index += 1

    # Only triple-quoted strings continue on the next line
    if open_string in {'"', "'"}:
        open_string = None
    return ScannedLine(line.rstrip(), depth, open_string)


def strip_comments(content: str) -> list[str]:
    """Remove comments, keeping one entry per input line."""
    lines: list[str] = []
    open_string = None
    for line in content.splitlines():
        scanned = scan_line(line, open_string)
        lines.append(scanned.code)
        open_string = scanned.open_string
    return lines


def indentation_prefix(line: str) -> str:
    """Leading whitespace of a line."""
    return line[: len(line) - len(line.lstrip())]


def logical_lines(content: str) -> list[Statement]:
    """Split source into statements, joining lines inside brackets or strings.

    Blank and comment-only lines are dropped. Continuation lines are stripped
    and joined to the first line with newlines.
    """
    statements: list[Statement] = []
    parts: list[str] = []
    open_string = None
    depth = 0
    start, prefix = 0, ""

    for number, line in enumerate(content.splitlines(), start=1):
        scanned = scan_line(line, open_string)
        open_string = scanned.open_string
        if not parts:
            if not scanned.code.strip():
                continue
            start, prefix, depth = number, indentation_prefix(line), 0
        parts.append(scanned.code.strip())
        depth = max(depth + scanned.depth, 0)

        if depth == 0 and open_string is None:
            statements.append(Statement(start, prefix, "\n".join(parts)))
            parts = []

    if parts:
        statements.append(Statement(start, prefix, "\n".join(parts)))
    return statements


@dataclass(frozen=True)
class ClassBlock:
    """A class statement and the statements making up its body."""

    name: str
    bases: str
    line: int
    indent: int
    body: tuple[Statement, ...]

    @property
    def member_indent(self) -> int | None:
        """Indentation of the body's direct members, None for an empty body."""
        if self.body and self.body[0].indent > self.indent:
            return self.body[0].indent
        return None

    @property
    def members(self) -> list[Statement]:
        """Statements directly inside the class, excluding nested blocks."""
        indent = self.member_indent
        return [statement for statement in self.body if statement.indent == indent]

    @property
    def docstring(self) -> str | None:
        """The class docstring, if the first member is a string literal."""
        members = self.members
        if members and (match := DOCSTRING_PATTERN.fullmatch(members[0].text)):
            return match.group(2).strip() or None
        return None

    def assignments(self) -> dict[str, str]:
        """Simple ``name = value`` members; the value is kept as source text."""
        assigned: dict[str, str] = {}
        for statement in self.members:
            if match := ASSIGNMENT_PATTERN.fullmatch(statement.text):
                assigned[match.group(1)] = match.group(2).strip()
        return assigned

    def nested(self, name: str) -> ClassBlock | None:
        """The body of a nested class such as ``Meta``."""
        indent = self.member_indent
        for index, statement in enumerate(self.body):
            match = CLASS_PATTERN.match(statement.text)
            if statement.indent != indent or not match or match.group(1) != name:
                continue
            end = index + 1
            while end < len(self.body) and self.body[end].indent > statement.indent:
                end += 1
            return ClassBlock(
                name=name,
                bases=match.group(2) or "",
                line=statement.line,
                indent=statement.indent,
                body=self.body[index + 1 : end],
            )
        return None


def ends_block(statement: Statement, indent: int) -> bool:
    """Whether ``statement`` starts a class or function at or left of ``indent``."""
    return statement.indent <= indent and statement.text.startswith(BLOCK_STARTS)


def find_classes(statements: Sequence[Statement]) -> Iterator[ClassBlock]:
    """Yield every class statement with its body.

    A body runs until the next ``class`` or ``def`` at the same or a lower
    indentation, or to the end of the input.
    """
    for index, statement in enumerate(statements):
        if not (match := CLASS_PATTERN.match(statement.text)):
            continue
        end = index + 1
        while end < len(statements):
            if ends_block(statements[end], statement.indent):
                break
            end += 1
        yield ClassBlock(
            name=match.group(1),
            bases=match.group(2) or "",
            line=statement.line,
            indent=statement.indent,
            body=tuple(statements[index + 1 : end]),
        )
