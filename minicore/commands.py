"""Small file utilities: cat, echo, ln, mkdir, rm and ls."""

from __future__ import annotations

import enum
import os
import stat as stat_mod
import sys
from typing import IO, Optional, TextIO

from .fmt import format_string

DIRSIZ = 14
_CHUNK = 512
_PATH_BUF = 512


class FileType(enum.IntEnum):
    """Kinds of file as reported by stat."""

    DIR = 1
    FILE = 2
    DEVICE = 3


def _args(argv: Optional[list[str]]) -> list[str]:
    return sys.argv[1:] if argv is None else list(argv)


def cat(stream: IO, out: IO) -> None:
    """Copy ``stream`` to ``out``; raises OSError naming a read or write error."""
    while True:
        try:
            chunk = stream.read(_CHUNK)
        except OSError as exc:
            raise OSError("cat: read error") from exc
        if not chunk:
            return
        try:
            out.write(chunk)
        except OSError as exc:
            raise OSError("cat: write error") from exc


def cat_main(argv: Optional[list[str]] = None) -> int:
    args = _args(argv)
    try:
        if not args:
            cat(sys.stdin.buffer, sys.stdout.buffer)
            return 0
        for name in args:
            try:
                f = open(name, "rb")
            except OSError:
                sys.stderr.write(f"cat: cannot open {name}\n")
                return 1
            with f:
                cat(f, sys.stdout.buffer)
    except OSError as exc:
        sys.stderr.write(f"{exc}\n")
        return 1
    return 0


def echo_main(argv: Optional[list[str]] = None) -> int:
    args = _args(argv)
    if args:
        sys.stdout.write(" ".join(args) + "\n")
    return 0


def ln_main(argv: Optional[list[str]] = None) -> int:
    args = _args(argv)
    if len(args) != 2:
        sys.stderr.write("Usage: ln old new\n")
        return 1
    old, new = args
    try:
        os.link(old, new)
    except OSError:
        sys.stderr.write(f"link {old} {new}: failed\n")
    return 0


def mkdir_main(argv: Optional[list[str]] = None) -> int:
    args = _args(argv)
    if not args:
        sys.stderr.write("Usage: mkdir files...\n")
        return 1
    for name in args:
        try:
            os.mkdir(name)
        except OSError:
            sys.stderr.write(f"mkdir: {name} failed to create\n")
            break
    return 0


def _unlink(name: str) -> None:
    if os.path.isdir(name) and not os.path.islink(name):
        os.rmdir(name)
    else:
        os.unlink(name)


def rm_main(argv: Optional[list[str]] = None) -> int:
    args = _args(argv)
    if not args:
        sys.stderr.write("Usage: rm files...\n")
        return 1
    for name in args:
        try:
            _unlink(name)
        except OSError:
            sys.stderr.write(f"rm: {name} failed to delete\n")
            break
    return 0


def fmtname(path: str) -> str:
    """The last path component, blank-padded to the directory-name width."""
    name = path[path.rfind("/") + 1 :]
    if len(name) >= DIRSIZ:
        return name
    return name.ljust(DIRSIZ)


def _file_type(mode: int) -> FileType:
    if stat_mod.S_ISDIR(mode):
        return FileType.DIR
    if stat_mod.S_ISREG(mode):
        return FileType.FILE
    return FileType.DEVICE


def ls(path: str, out: TextIO) -> None:
    """List ``path``: one line for a file, one per entry for a directory."""
    try:
        st = os.stat(path)
    except OSError:
        sys.stderr.write(f"ls: cannot open {path}\n")
        return
    kind = _file_type(st.st_mode)
    if kind != FileType.DIR:
        out.write(format_string("%s %d %d %l\n", fmtname(path), kind, st.st_ino, st.st_size))
        return
    if len(path) + 1 + DIRSIZ + 1 > _PATH_BUF:
        out.write("ls: path too long\n")
        return
    try:
        names = [".", ".."] + sorted(os.listdir(path))
    except OSError:
        sys.stderr.write(f"ls: cannot open {path}\n")
        return
    for name in names:
        full = f"{path}/{name}"
        try:
            est = os.stat(full)
        except OSError:
            out.write(f"ls: cannot stat {full}\n")
            continue
        out.write(
            format_string(
                "%s %d %d %d\n", fmtname(full), _file_type(est.st_mode), est.st_ino, est.st_size
            )
        )


def ls_main(argv: Optional[list[str]] = None) -> int:
    args = _args(argv)
    for path in args or ["."]:
        ls(path, sys.stdout)
    return 0