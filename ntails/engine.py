"""
Main tail engine.
"""

import asyncio
import logging
from collections import namedtuple
from contextlib import aclosing

from .colorize import header, resolve_color
from .config import default_lines
from .tail import Watcher, last_lines_pos
from .util import Closable, basename, build_repr, max_base_length

log = logging.getLogger()


class WatchTarget(namedtuple('WatchTarget', [
        'path', 'lines', 'offset', 'color', 'width', 'print_filename',
        'watcher'])):
    """a followed file, its display settings, and the Watcher reading it"""
    __slots__ = ()

    @property
    def basename(self):
        return basename(self.path)

    @property
    def header(self):
        if not self.print_filename:
            return ''
        return header(self.basename, self.width, self.color)


def tail_offset(path, lines, reopen=False):
    """
    offset of the last lines of path, 0 for a missing path when reopen is
    set since the file will be shown from its start once it appears
    """
    try:
        return last_lines_pos(path, lines)
    except FileNotFoundError:
        if not reopen:
            raise
        log.debug('%s does not exist yet, starting at 0', path)
        return 0


def build_target(path, index, config, width):
    """position, color, and open the Watcher for one file"""
    lines = config.lines or default_lines
    offset = tail_offset(path, lines, config.reopen)
    color = resolve_color(basename(path), index,
                          config.consistent_color, config.color)
    watcher = Watcher(
        path, offset,
        follow=config.follow,
        reopen=config.reopen,
        poll=config.poll,
        interval=config.interval,
    )
    watcher.open()
    target = WatchTarget(path, lines, offset, color, width,
                         config.print_filename, watcher)
    log.debug('build_target(%r) => %r', path, target)
    return target


def build_targets(config):
    """
    WatchTargets for config.files in order. Either every file is set up or
    none is: watchers already opened are closed before the error is raised.
    """
    width = max_base_length(config.files)
    targets = []
    try:
        for index, path in enumerate(config.files):
            targets.append(build_target(path, index, config, width))
    except Exception:
        for target in targets:
            target.watcher.close()
        raise
    return targets


async def print_stream(target, terminal):
    """
    Write every line of target to terminal, prefixed by its header.
    A LineEvent error or a terminal write error is raised.
    """
    prefix = target.header
    async with aclosing(target.watcher.lines()) as events:
        async for event in events:
            if event.error is not None:
                raise event.error
            terminal.emit_line(prefix + event.text)
            # let the other files and signal handlers run between lines
            await asyncio.sleep(0)
    log.debug('finished printing %s', target.path)


class TailService(Closable):
    """
    Runs a print_stream task per file until all of them are done, or until
    close() stops every watcher.
    """

    def __init__(self, config, targets=None):
        super().__init__()
        self.config = config
        self.targets = build_targets(config) if targets is None else targets

    def close(self):
        super().close()
        for target in self.targets:
            target.watcher.stop()

    async def loop(self, terminal):
        """
        Print all files to terminal. The first failure stops the others and
        is raised once they finish. Failures that ended the first wait
        together are ordered by file.
        """
        loop = asyncio.get_running_loop()
        tasks = [loop.create_task(print_stream(target, terminal),
                                  name='tail %s' % target.basename)
                 for target in self.targets]
        if not tasks:
            return
        try:
            log.debug('tail loop -> %d files', len(tasks))
            done, pending = await asyncio.wait(
                tasks, return_when=asyncio.FIRST_EXCEPTION)
            ordered = [t for t in tasks if t in done] + \
                      [t for t in tasks if t not in done]
            if pending:
                log.debug('%d stream(s) failed, stopping the rest',
                          len(tasks) - len(pending))
                self.close()
                await asyncio.wait(pending)
        except asyncio.CancelledError:
            self.close()
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        finally:
            log.debug('finished tail loop -> closed: %s', self.is_closed)

        # retrieve every exception, or asyncio reports the rest on collection
        errors = [e for e in (t.exception() for t in ordered) if e is not None]
        if errors:
            for error in errors[1:]:
                log.debug('another stream failed: %s', error)
            raise errors[0]

    __repr__ = build_repr('TailService', 'config')
