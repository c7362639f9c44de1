"""Parser for the command language of the shell.

Supports words, ``<``, ``>``, ``>>``, ``|``, ``;``, ``&`` and parentheses.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional, Union

WHITESPACE = " \t\r\n\v"
SYMBOLS = "<|>&;()"
MAXARGS = 10


class ShellSyntaxError(ValueError):
    """The command line cannot be parsed."""


class RedirMode(enum.Enum):
    """How a redirected file is opened."""

    READ = "<"
    TRUNCATE = ">"
    APPEND = ">>"


@dataclass
class ExecCmd:
    """A program and its arguments."""

    argv: list[str] = field(default_factory=list)


@dataclass
class RedirCmd:
    """A command with one file descriptor redirected to a file."""

    cmd: "Command"
    file: str
    mode: RedirMode
    fd: int


@dataclass
class PipeCmd:
    """The output of ``left`` fed to ``right``."""

    left: "Command"
    right: "Command"


@dataclass
class ListCmd:
    """``left`` run to completion, then ``right``."""

    left: "Command"
    right: "Command"


@dataclass
class BackCmd:
    """A command run in the background."""

    cmd: "Command"


Command = Union[ExecCmd, RedirCmd, PipeCmd, ListCmd, BackCmd]

_END = ""
_WORD = "a"


class _Lexer:
    def __init__(self, text: str) -> None:
        self.text = text.split("\0", 1)[0]
        self.pos = 0

    def _skip(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos] in WHITESPACE:
            self.pos += 1

    def peek(self, toks: str) -> bool:
        self._skip()
        return self.pos < len(self.text) and self.text[self.pos] in toks

    def rest(self) -> str:
        return self.text[self.pos :]

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def next(self) -> tuple[str, str]:
        """Return ``(kind, text)``; kind is the operator, ``"a"`` or ``""`` at the end."""
        self._skip()
        text, start = self.text, self.pos
        if start >= len(text):
            return _END, ""
        c = text[start]
        if c in "|();&<":
            kind, end = c, start + 1
        elif c == ">":
            if start + 1 < len(text) and text[start + 1] == ">":
                kind, end = ">>", start + 2
            else:
                kind, end = ">", start + 1
        else:
            end = start
            while end < len(text) and text[end] not in WHITESPACE and text[end] not in SYMBOLS:
                end += 1
            kind = _WORD
        self.pos = end
        self._skip()
        return kind, text[start:end]


def tokenize(text: str) -> list[str]:
    """Split ``text`` into words and operators."""
    lexer = _Lexer(text)
    tokens = []
    while True:
        kind, value = lexer.next()
        if kind == _END:
            return tokens
        tokens.append(value)


class _Parser:
    def __init__(self, text: str) -> None:
        self.lex = _Lexer(text)

    def line(self) -> Command:
        cmd = self.pipe()
        while self.lex.peek("&"):
            self.lex.next()
            cmd = BackCmd(cmd)
        if self.lex.peek(";"):
            self.lex.next()
            cmd = ListCmd(cmd, self.line())
        return cmd

    def pipe(self) -> Command:
        cmd = self.exec()
        if self.lex.peek("|"):
            self.lex.next()
            cmd = PipeCmd(cmd, self.pipe())
        return cmd

    def redirs(self, cmd: Command) -> Command:
        while self.lex.peek("<>"):
            tok, _ = self.lex.next()
            kind, name = self.lex.next()
            if kind != _WORD:
                raise ShellSyntaxError("missing file for redirection")
            if tok == "<":
                cmd = RedirCmd(cmd, name, RedirMode.READ, 0)
            elif tok == ">":
                cmd = RedirCmd(cmd, name, RedirMode.TRUNCATE, 1)
            else:
                cmd = RedirCmd(cmd, name, RedirMode.APPEND, 1)
        return cmd

    def block(self) -> Command:
        if not self.lex.peek("("):
            raise ShellSyntaxError("parseblock")
        self.lex.next()
        cmd = self.line()
        if not self.lex.peek(")"):
            raise ShellSyntaxError("syntax - missing )")
        self.lex.next()
        return self.redirs(cmd)

    def exec(self) -> Command:
        if self.lex.peek("("):
            return self.block()
        exec_cmd = ExecCmd()
        ret: Command = self.redirs(exec_cmd)
        while not self.lex.peek("|)&;"):
            kind, word = self.lex.next()
            if kind == _END:
                break
            if kind != _WORD:
                raise ShellSyntaxError("syntax")
            exec_cmd.argv.append(word)
            if len(exec_cmd.argv) >= MAXARGS:
                raise ShellSyntaxError("too many args")
            ret = self.redirs(ret)
        return ret


def parse_command(text: str) -> Command:
    """Parse one command line into a command tree."""
    parser = _Parser(text)
    cmd = parser.line()
    parser.lex.peek("")
    if not parser.lex.at_end():
        raise ShellSyntaxError(f"syntax: leftovers: {parser.lex.rest()}")
    return cmd


def split_cd(line: str) -> Optional[str]:
    """The directory of a ``cd`` line, or None for any other line.

    The line's last character, normally its newline, is dropped first.
    """
    if not line.startswith("cd "):
        return None
    return line[:-1][3:]