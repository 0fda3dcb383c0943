"""
Tail start positions and the file watcher producing new lines.
"""

import asyncio
import errno
import logging
import os
from collections import namedtuple

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .util import Closable, build_repr, coerce_str as _str

log = logging.getLogger()

LineEvent = namedtuple('LineEvent', ['text', 'error'], defaults=(None,))

chunk_size = 4096
default_interval = 0.25
# how long an observer thread takes to notice stop()
observer_timeout = 0.1

# _check_file results
TRUNCATED = 'truncated'
ROTATED = 'rotated'
REMOVED = 'removed'


def last_lines_pos(path, n, block=chunk_size):
    """
    Byte offset where the last n lines of path begin.

    Blocks are read backward from the end of the file until n line breaks
    (n + 1 when the file ends with a newline) have been passed or the
    start of the file is reached. An unterminated last line counts as a
    line. n == 0 gives the end of the file.
    :param path: file to scan
    :param n: number of trailing lines
    :param block: read size of each backward step
    :return: offset in [0, size]
    :raises FileNotFoundError: path does not exist
    """
    with open(path, 'rb') as fh:
        size = os.fstat(fh.fileno()).st_size
        if size == 0:
            return 0
        if n <= 0:
            return size

        fh.seek(size - 1)
        wanted = n + 1 if fh.read(1) == b'\n' else n

        pos = size
        while pos > 0:
            read_size = min(block, pos)
            pos -= read_size
            fh.seek(pos)
            chunk = fh.read(read_size)
            end = len(chunk)
            while True:
                idx = chunk.rfind(b'\n', 0, end)
                if idx < 0:
                    break
                wanted -= 1
                if wanted == 0:
                    return pos + idx + 1
                end = idx
    return 0


class _ChangeHandler(FileSystemEventHandler):
    """calls back on any event naming path"""

    def __init__(self, path, callback):
        self.path = path
        self.callback = callback

    def on_any_event(self, event):
        paths = (event.src_path, getattr(event, 'dest_path', None))
        if any(p and os.path.abspath(_str(p)) == self.path for p in paths):
            self.callback()


class Watcher(Closable):
    """
    Produces the lines of a file from offset, optionally following it.

    Waiting for new data is woken by watchdog filesystem events, or only
    by the interval timer when poll is set. The interval also bounds
    every wait in event mode, so a missed event delays a line at most one
    interval.
    """

    def __init__(self, path, offset=0, follow=False, reopen=False,
                 poll=False, interval=default_interval):
        super().__init__()
        self.path = path
        self.offset = offset
        self.follow = follow or reopen
        self.reopen = reopen
        self.poll = poll
        self.interval = interval
        self._abspath = os.path.abspath(path)
        self._fh = None
        self._opened = False
        self._stopped = False
        self._observer = None
        self._loop = None
        self._changed = None

    @property
    def is_stopped(self):
        return self._stopped

    def open(self):
        """
        Open the file at offset (0 after a reopen).
        :return: False if the file is absent and reopen is set
        :raises FileNotFoundError: file is absent and reopen is not set
        """
        try:
            fh = open(self.path, 'rb')
        except FileNotFoundError:
            if not self.reopen:
                raise
            log.debug('waiting for %s to appear', self.path)
            return False
        offset = 0 if self._opened else self.offset
        fh.seek(offset)
        log.debug('opened %s at %d', self.path, offset)
        self._fh = fh
        self._opened = True
        return True

    def stop(self):
        """end lines() at its next check, safe to call from any thread"""
        if self._stopped:
            return
        log.debug('stop %s', self.path)
        self._stopped = True
        self._wake()

    def close(self):
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None
        if self._fh is not None:
            self._fh.close()
            self._fh = None
        self._changed = None
        super().close()

    def _wake(self):
        loop, changed = self._loop, self._changed
        if loop is None or changed is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(changed.set)
        except RuntimeError:
            pass  # loop closed since the check

    def _start_observer(self):
        directory = os.path.dirname(self._abspath)
        observer = Observer(timeout=observer_timeout)
        try:
            observer.schedule(_ChangeHandler(self._abspath, self._wake),
                              directory, recursive=False)
            observer.start()
        except OSError as e:
            log.debug('cannot watch %s, polling instead: %s', directory, e)
            return
        self._observer = observer

    async def _wait(self):
        try:
            await asyncio.wait_for(self._changed.wait(), self.interval)
        except asyncio.TimeoutError:
            pass
        self._changed.clear()

    def _check_file(self):
        """what happened to the file since the last read, None if nothing"""
        try:
            st = os.stat(self.path)
        except FileNotFoundError:
            return REMOVED
        fst = os.fstat(self._fh.fileno())
        if self.reopen and (st.st_dev, st.st_ino) != (fst.st_dev, fst.st_ino):
            return ROTATED
        if fst.st_size < self._fh.tell():
            return TRUNCATED
        return None

    @staticmethod
    def _event(data):
        if data.endswith(b'\n'):
            data = data[:-1]
        return LineEvent(_str(data, 'replace'))

    async def lines(self):
        """
        Generate a LineEvent per line. Ends at end of file unless following,
        or once stop() is called. Read failures are produced as a LineEvent
        error, after which the generator ends.
        """
        self._loop = asyncio.get_running_loop()
        self._changed = asyncio.Event()
        if self.follow and not self.poll:
            self._start_observer()

        pending = b''
        try:
            while not self._stopped:
                try:
                    if self._fh is None and not self.open():
                        await self._wait()
                        continue
                    data = self._fh.readline()
                except OSError as e:
                    yield LineEvent(None, e)
                    return

                if data:
                    pending += data
                    if pending.endswith(b'\n'):
                        yield self._event(pending)
                        pending = b''
                    continue

                if not self.follow:
                    if pending:
                        yield self._event(pending)
                    return

                try:
                    status = self._check_file()
                except OSError as e:
                    yield LineEvent(None, e)
                    return
                if status is None:
                    await self._wait()
                    continue

                if pending:
                    yield self._event(pending)
                    pending = b''
                if status == TRUNCATED:
                    log.debug('%s truncated', self.path)
                    self._fh.seek(0)
                elif status == ROTATED:
                    log.debug('%s rotated, reopening', self.path)
                    self._fh.close()
                    self._fh = None
                elif self.reopen:
                    log.debug('%s removed', self.path)
                    self._fh.close()
                    self._fh = None
                else:
                    yield LineEvent(None, FileNotFoundError(
                        errno.ENOENT, 'file removed', self.path))
                    return
        finally:
            log.debug('finished %s -> stopped: %s', self.path, self._stopped)
            self.close()

    __repr__ = build_repr('Watcher', 'path', 'offset', 'follow', 'reopen')
