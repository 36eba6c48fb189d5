import threading
import time
import pytest
from dupe_finder.exceptions import ScanCancelled
from dupe_finder.scanning.channels import Channel, ChannelClosed


def start(fn, *args):
    t = threading.Thread(target=fn, args=args, daemon=True)
    t.start()
    return t

def test_bounded_channel_blocks_when_full():
    ch = Channel(3)
    for i in range(3):
        ch.put(i)

    t = start(ch.put, 3)
    time.sleep(0.2)
    assert t.is_alive(), "put should block while the channel is full"
    assert ch.qsize() == 3

    assert ch.get() == 0
    t.join(timeout=2)
    assert not t.is_alive()
    assert [ch.get() for _ in range(3)] == [1, 2, 3]

def test_rendezvous_put_waits_for_consumer():
    ch = Channel(0)
    t = start(ch.put, "item")

    time.sleep(0.2)
    assert t.is_alive(), "put on a rendezvous channel returns only once taken"

    assert ch.get() == "item"
    t.join(timeout=2)
    assert not t.is_alive()

def test_close_delivers_buffered_items_first():
    ch = Channel(2)
    ch.put("a")
    ch.put("b")
    ch.close()

    assert ch.get() == "a"
    assert ch.get() == "b"
    with pytest.raises(ChannelClosed):
        ch.get()

def test_put_after_close_fails():
    ch = Channel(1)
    ch.close()
    with pytest.raises(ChannelClosed):
        ch.put("late")

def test_cancel_wakes_blocked_consumer():
    cancel = threading.Event()
    ch = Channel(0, cancel)
    errors = []

    def consume():
        try:
            ch.get()
        except ScanCancelled as e:
            errors.append(e)

    t = start(consume)
    time.sleep(0.1)
    cancel.set()
    t.join(timeout=2)

    assert not t.is_alive()
    assert len(errors) == 1

def test_cancel_wakes_blocked_producer():
    cancel = threading.Event()
    ch = Channel(1, cancel)
    ch.put("fills the slot")
    errors = []

    def produce():
        try:
            ch.put("blocked")
        except ScanCancelled as e:
            errors.append(e)

    t = start(produce)
    time.sleep(0.1)
    cancel.set()
    t.join(timeout=2)

    assert not t.is_alive()
    assert len(errors) == 1

def test_drain_discards_buffered_items():
    ch = Channel(3)
    ch.put(1)
    ch.put(2)
    assert ch.drain() == 2
    assert ch.qsize() == 0

def test_negative_capacity_rejected():
    with pytest.raises(ValueError):
        Channel(-1)
