"""Raw key input: a background thread that turns keypresses into key events."""

from __future__ import annotations

import logging
import os
import queue
import select
import sys
import termios
import threading
import tty

from .events import Key, Typed

log = logging.getLogger(__name__)

_SEQUENCES = {
    b"\x1b[A": Key.UP,
    b"\x1bOA": Key.UP,
    b"\x1b[B": Key.DOWN,
    b"\x1bOB": Key.DOWN,
    b"\x1b[C": Key.RIGHT,
    b"\x1bOC": Key.RIGHT,
    b"\x1b[D": Key.LEFT,
    b"\x1bOD": Key.LEFT,
}

_CHARS = {
    b"k": Key.UP,
    b"j": Key.DOWN,
    b"l": Key.RIGHT,
    b"h": Key.LEFT,
    b"\r": Key.CONFIRM,
    b"\n": Key.CONFIRM,
    b"\x1b": Key.BACK,
    b"q": Key.BACK,
    b"r": Key.REFRESH,
    b"/": Key.FILTER,
    b"\x7f": Key.ERASE,
    b"\x08": Key.ERASE,
    b"\x03": Key.QUIT,
}


def decode_keys(data: bytes) -> list[Key | Typed]:
    """Decode a chunk read from the terminal, ignoring unmapped bytes.

    Printable ASCII comes back as Typed so filter input can use the
    character; control bytes and escape sequences come back as plain keys.
    """
    keys: list[Key | Typed] = []
    i = 0
    while i < len(data):
        seq = data[i:i + 3]
        if seq in _SEQUENCES:
            keys.append(_SEQUENCES[seq])
            i += 3
            continue
        byte = data[i:i + 1]
        if 0x20 <= byte[0] < 0x7f:
            keys.append(Typed(byte.decode("ascii"), _CHARS.get(byte)))
        elif byte in _CHARS:
            keys.append(_CHARS[byte])
        i += 1
    return keys


class KeyReader:
    """Context manager that reads keys from stdin in a background thread.

    The terminal is put into cbreak mode so single keypresses arrive
    unbuffered; every decoded key is posted onto ``events``. Ctrl+C still
    raises KeyboardInterrupt in the main thread.
    """

    def __init__(self, events: queue.Queue, *, fd: int | None = None):
        self.events = events
        self._fd = fd
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._old_settings = None

    def __enter__(self):
        fd = self._fd if self._fd is not None else sys.stdin.fileno()
        self._fd = fd
        if not os.isatty(fd):
            log.warning("stdin is not a terminal; key input disabled")
            return self
        try:
            self._old_settings = termios.tcgetattr(fd)
            tty.setcbreak(fd)
        except termios.error:
            self._old_settings = None
            return self

        self._stop.clear()
        self._thread = threading.Thread(target=self._listen, name="keys", daemon=True)
        self._thread.start()
        return self

    def __exit__(self, *exc):
        self._stop.set()
        if self._old_settings is not None:
            try:
                termios.tcsetattr(self._fd, termios.TCSADRAIN, self._old_settings)
            except termios.error:
                pass
        self._old_settings = None

    def _listen(self):
        while not self._stop.is_set():
            try:
                rlist, _, _ = select.select([self._fd], [], [], 0.1)
                if not rlist:
                    continue
                # escape sequences arrive in a single read
                data = os.read(self._fd, 16)
            except (OSError, ValueError):
                break
            if not data:
                break
            for key in decode_keys(data):
                self.events.put(key)
