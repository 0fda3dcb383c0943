"""
Test tail start positions and the Watcher
"""

import asyncio
import os

import pytest

from ntails.tail import LineEvent, Watcher, last_lines_pos
from test.loggen import append_lines, numbered_lines, write_log


def read_from(path, offset):
    with open(str(path), 'rb') as fh:
        fh.seek(offset)
        return fh.read()


def test_empty_file(tmp_path):
    path = tmp_path / 'empty.log'
    path.write_bytes(b'')
    assert last_lines_pos(path, 10) == 0


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        last_lines_pos(tmp_path / 'missing.log', 10)


@pytest.mark.parametrize('count', [1, 5, 9])
def test_fewer_lines(tmp_path, count):
    path = write_log(tmp_path / 'a.log', numbered_lines(count))
    assert last_lines_pos(path, 10) == 0


def test_exact_lines(tmp_path):
    path = write_log(tmp_path / 'a.log', numbered_lines(10))
    assert last_lines_pos(path, 10) == 0


@pytest.mark.parametrize('total,n,block', [
    (12, 10, 4096),
    (12, 10, 1),
    (100, 1, 3),
    (1000, 10, 16),
    (1000, 999, 4096),
])
def test_more_lines(tmp_path, total, n, block):
    lines = numbered_lines(total)
    path = write_log(tmp_path / 'a.log', lines)
    offset = last_lines_pos(path, n, block=block)
    expected = ''.join(line + '\n' for line in lines[-n:]).encode()
    assert read_from(path, offset) == expected


def test_unterminated_last_line(tmp_path):
    path = tmp_path / 'a.log'
    path.write_bytes(b'1\n2\n3')
    assert read_from(path, last_lines_pos(path, 2)) == b'2\n3'
    assert read_from(path, last_lines_pos(path, 1)) == b'3'


def test_blank_lines(tmp_path):
    path = tmp_path / 'a.log'
    path.write_bytes(b'a\n\n\nb\n')
    assert read_from(path, last_lines_pos(path, 2)) == b'\nb\n'


def test_zero_lines(tmp_path):
    path = write_log(tmp_path / 'a.log', numbered_lines(3))
    assert last_lines_pos(path, 0) == os.path.getsize(str(path))


def collect(watcher, limit=None):
    async def run():
        events = []
        watcher.open()
        async for event in watcher.lines():
            events.append(event)
            if limit and len(events) >= limit:
                break
        return events

    return asyncio.run(run())


def test_watcher_reads_to_end(tmp_path):
    path = write_log(tmp_path / 'a.log', numbered_lines(12))
    events = collect(Watcher(str(path), last_lines_pos(path, 10)))
    assert events == [LineEvent(line) for line in numbered_lines(10, 3)]


def test_watcher_partial_last_line(tmp_path):
    path = tmp_path / 'a.log'
    path.write_bytes(b'one\ntwo')
    events = collect(Watcher(str(path)))
    assert [e.text for e in events] == ['one', 'two']


def test_watcher_missing_file(tmp_path):
    watcher = Watcher(str(tmp_path / 'missing.log'))
    with pytest.raises(FileNotFoundError):
        watcher.open()


def test_watcher_missing_file_reopen(tmp_path):
    watcher = Watcher(str(tmp_path / 'missing.log'), reopen=True)
    assert watcher.open() is False
    assert watcher.follow


async def follow(watcher, changes, expect):
    """
    Follow watcher, calling each of changes once the lines read so far
    stop arriving, until expect events are collected.
    """
    events = []
    changes = list(changes)
    watcher.open()

    async def consume():
        async for event in watcher.lines():
            events.append(event)
            if len(events) >= expect or event.error:
                watcher.stop()

    task = asyncio.get_running_loop().create_task(consume())
    for change in changes:
        await asyncio.sleep(0.1)
        change()
    await asyncio.wait_for(task, 5)
    return events


@pytest.mark.parametrize('poll', [True, False])
def test_watcher_follows_appends(tmp_path, poll):
    path = write_log(tmp_path / 'a.log', numbered_lines(2))
    watcher = Watcher(str(path), follow=True, poll=poll, interval=0.05)
    events = asyncio.run(follow(watcher, [
        lambda: append_lines(path, ['3', '4']),
    ], 4))
    assert [e.text for e in events] == ['1', '2', '3', '4']


def test_watcher_holds_partial_line(tmp_path):
    path = tmp_path / 'a.log'
    path.write_bytes(b'1\npart')

    def finish():
        with open(str(path), 'ab') as fh:
            fh.write(b'ial\n')

    watcher = Watcher(str(path), follow=True, poll=True, interval=0.05)
    events = asyncio.run(follow(watcher, [finish], 2))
    assert [e.text for e in events] == ['1', 'partial']


def test_watcher_truncated(tmp_path):
    path = write_log(tmp_path / 'a.log', ['old 1', 'old 2'])
    watcher = Watcher(str(path), follow=True, poll=True, interval=0.05)
    events = asyncio.run(follow(watcher, [
        lambda: write_log(path, ['new']),
    ], 3))
    assert [e.text for e in events] == ['old 1', 'old 2', 'new']


def test_watcher_removed(tmp_path):
    path = write_log(tmp_path / 'a.log', ['1'])
    watcher = Watcher(str(path), follow=True, poll=True, interval=0.05)
    events = asyncio.run(follow(watcher, [path.unlink], 2))
    assert events[0] == LineEvent('1')
    assert isinstance(events[1].error, FileNotFoundError)


def test_watcher_rotated(tmp_path):
    path = write_log(tmp_path / 'a.log', ['1'])

    def rotate():
        path.rename(tmp_path / 'a.log.1')
        write_log(path, ['2'])

    watcher = Watcher(str(path), reopen=True, poll=True, interval=0.05)
    events = asyncio.run(follow(watcher, [rotate], 2))
    assert [e.text for e in events] == ['1', '2']


def test_watcher_created_later(tmp_path):
    path = tmp_path / 'late.log'
    watcher = Watcher(str(path), reopen=True, poll=True, interval=0.05)
    events = asyncio.run(follow(watcher, [
        lambda: write_log(path, ['1', '2']),
    ], 2))
    assert [e.text for e in events] == ['1', '2']


def test_watcher_stop(tmp_path):
    path = write_log(tmp_path / 'a.log', ['1'])
    watcher = Watcher(str(path), follow=True, interval=10)

    async def run():
        events = []
        watcher.open()

        async def consume():
            async for event in watcher.lines():
                events.append(event)

        task = asyncio.get_running_loop().create_task(consume())
        await asyncio.sleep(0.1)
        watcher.stop()
        watcher.stop()
        await asyncio.wait_for(task, 2)
        return events

    assert asyncio.run(run()) == [LineEvent('1')]
    assert watcher.is_stopped
    assert watcher.is_closed


def test_watcher_close_joins_observer(tmp_path):
    path = write_log(tmp_path / 'a.log', ['1'])
    watcher = Watcher(str(path), follow=True, interval=10)
    observers = []

    async def run():
        watcher.open()

        async def consume():
            async for event in watcher.lines():
                observers.append(watcher._observer)

        task = asyncio.get_running_loop().create_task(consume())
        await asyncio.sleep(0.1)
        watcher.stop()
        await asyncio.wait_for(task, 2)

    asyncio.run(run())
    assert observers and observers[0] is not None
    assert not observers[0].is_alive()
    assert watcher._observer is None
