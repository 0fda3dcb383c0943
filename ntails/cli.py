"""
Terminal output shared by all followed files
"""
import sys
import logging
import threading

from colorama import AnsiToWin32

from .util import coerce_str as _str

log = logging.getLogger()


def colorable_stdout(stream=None):
    """
    stream which renders ANSI escapes, converted to win32 console calls
    where the console doesn't understand them, passed through elsewhere
    """
    return AnsiToWin32(stream or sys.stdout, strip=False).stream


class Terminal:
    """Output sink, one complete line per write"""

    def __init__(self, stdout=None, color=True):
        if stdout is None:
            stdout = colorable_stdout() if color else sys.stdout
        self.stdout = stdout
        self._lock = threading.Lock()

    def emit_line(self, line):
        """Write line and a newline with a single write, then flush"""
        data = _str(line) + '\n'
        with self._lock:
            self.stdout.write(data)
            self.stdout.flush()
