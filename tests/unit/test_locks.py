"""Tests for per-identity locking."""

import threading
import time

from controller.locks import KeyedLock


class TestKeyedLock:
    """Tests for KeyedLock."""

    def test_same_key_is_serialized(self):
        """A second holder of the same key should wait for the first."""
        locks = KeyedLock()
        order = []
        entered = threading.Event()

        def first():
            with locks.hold(("default", "a")):
                entered.set()
                time.sleep(0.05)
                order.append("first")

        def second():
            entered.wait(5)
            with locks.hold(("default", "a")):
                order.append("second")

        threads = [threading.Thread(target=first), threading.Thread(target=second)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(5)

        assert order == ["first", "second"]

    def test_different_keys_do_not_block(self):
        """Holding one key should not block another."""
        locks = KeyedLock()
        acquired = threading.Event()

        def other():
            with locks.hold(("default", "b")):
                acquired.set()

        with locks.hold(("default", "a")):
            t = threading.Thread(target=other)
            t.start()
            assert acquired.wait(5)
        t.join(5)

    def test_reentrant(self):
        """The same thread should be able to nest holds on one key."""
        locks = KeyedLock()

        with locks.hold("key"):
            with locks.hold("key"):
                assert len(locks) == 1

    def test_entries_are_released(self):
        """Unused keys should not accumulate."""
        locks = KeyedLock()

        for i in range(10):
            with locks.hold(("ns", str(i))):
                pass

        assert len(locks) == 0

    def test_released_on_exception(self):
        """An exception inside the block should release the lock."""
        locks = KeyedLock()

        try:
            with locks.hold("key"):
                raise RuntimeError("boom")
        except RuntimeError:
            pass

        acquired = threading.Event()

        def other():
            with locks.hold("key"):
                acquired.set()

        t = threading.Thread(target=other)
        t.start()
        assert acquired.wait(5)
        t.join(5)
        assert len(locks) == 0
