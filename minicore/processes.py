"""Small process demonstrations: ping-pong over a pipe, kill and a file stress run."""

from __future__ import annotations

import os
import signal
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, TextIO

from .libc import atoi

_BLOCK = 512
_WRITES = 20
_WORKERS = 5
_KILL_SIGNAL = getattr(signal, "SIGKILL", signal.SIGTERM)


def _read_message(fd: int) -> str:
    data = os.read(fd, 10)
    return data.split(b"\0", 1)[0].decode()


def pingpong(out: TextIO) -> list[str]:
    """Send "ping" to a second thread over a pipe and get "pong" back.

    Each side writes ``<id> received: <message>``; the messages are returned
    in the order they were received.
    """
    rfd, wfd = os.pipe()
    received: list[str] = []
    lock = threading.Lock()

    def child() -> None:
        msg = _read_message(rfd)
        with lock:
            received.append(msg)
            out.write(f"{threading.get_native_id()} received: {msg}\n")
        os.write(wfd, b"pong\0")

    try:
        worker = threading.Thread(target=child)
        worker.start()
        os.write(wfd, b"ping\0")
        worker.join()
        msg = _read_message(rfd)
        with lock:
            received.append(msg)
            out.write(f"{threading.get_native_id()} received: {msg}\n")
    finally:
        os.close(rfd)
        os.close(wfd)
    return received


def kill_main(argv: Optional[list[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        sys.stderr.write("usage: kill pid...\n")
        return 1
    for arg in args:
        pid = atoi(arg)
        if pid <= 0:
            continue
        try:
            os.kill(pid, _KILL_SIGNAL)
        except (OSError, OverflowError):
            pass
    return 0


def stressfs(directory: str, out: TextIO) -> list[str]:
    """Have five workers each write and read back their own file at once.

    Returns the paths written, ``stressfs0`` to ``stressfs4`` in ``directory``.
    """
    lock = threading.Lock()

    def say(text: str) -> None:
        with lock:
            out.write(text)

    say("stressfs starting\n")
    data = b"a" * _BLOCK

    def work(i: int) -> str:
        say(f"write {i}\n")
        path = os.path.join(directory, f"stressfs{i}")
        with open(path, "wb") as f:
            for _ in range(_WRITES):
                f.write(data)
        say("read\n")
        with open(path, "rb") as f:
            for _ in range(_WRITES):
                f.read(_BLOCK)
        return path

    with ThreadPoolExecutor(max_workers=_WORKERS) as pool:
        return list(pool.map(work, range(_WORKERS)))