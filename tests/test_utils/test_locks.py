"""Tests for the reader/writer lock."""

import threading
import time

from graphrag_core.utils.locks import ReadWriteLock


def test_readers_share_the_lock():
    lock = ReadWriteLock()
    inside = threading.Barrier(2, timeout=2)

    def reader():
        with lock.read():
            inside.wait()

    threads = [threading.Thread(target=reader) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=3)

    assert not any(t.is_alive() for t in threads)


def test_writer_excludes_readers():
    lock = ReadWriteLock()
    events = []

    def reader():
        with lock.read():
            events.append("read")

    with lock.write():
        thread = threading.Thread(target=reader)
        thread.start()
        time.sleep(0.05)
        events.append("write done")
    thread.join(timeout=2)

    assert events == ["write done", "read"]


def test_write_is_reentrant():
    lock = ReadWriteLock()
    with lock.write():
        with lock.write():
            with lock.read():
                pass

    # Released fully: another thread can now write
    acquired = []

    def writer():
        with lock.write():
            acquired.append(True)

    thread = threading.Thread(target=writer)
    thread.start()
    thread.join(timeout=2)
    assert acquired == [True]


def test_waiting_writer_blocks_new_readers():
    lock = ReadWriteLock()
    order = []
    first_reader_in = threading.Event()
    release_first = threading.Event()

    def first_reader():
        with lock.read():
            first_reader_in.set()
            release_first.wait(timeout=2)
        order.append("reader1 out")

    def writer():
        with lock.write():
            order.append("writer")

    def second_reader():
        with lock.read():
            order.append("reader2")

    t1 = threading.Thread(target=first_reader)
    t1.start()
    first_reader_in.wait(timeout=2)

    tw = threading.Thread(target=writer)
    tw.start()
    time.sleep(0.05)
    t2 = threading.Thread(target=second_reader)
    t2.start()
    time.sleep(0.05)
    release_first.set()

    for t in (t1, tw, t2):
        t.join(timeout=2)

    assert order.index("writer") < order.index("reader2")
