"""Tests for KeyedLock and per-subject serialization in the engine."""

from __future__ import annotations

import threading
import time

from bastion_core.engine import KeyedLock
from bastion_core.interfaces import Subject


class TestKeyedLock:
    def test_forgets_released_keys(self):
        locks = KeyedLock()
        with locks.hold("a"):
            assert len(locks) == 1
        assert len(locks) == 0

    def test_same_key_is_exclusive(self):
        locks = KeyedLock()
        inside = 0
        peak = 0
        guard = threading.Lock()

        def worker():
            nonlocal inside, peak
            with locks.hold("user:steve"):
                with guard:
                    inside += 1
                    peak = max(peak, inside)
                time.sleep(0.01)
                with guard:
                    inside -= 1

        threads = [threading.Thread(target=worker) for _ in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert peak == 1
        assert len(locks) == 0

    def test_different_keys_do_not_block(self):
        locks = KeyedLock()
        entered = threading.Event()

        def other():
            with locks.hold("b"):
                entered.set()

        with locks.hold("a"):
            t = threading.Thread(target=other)
            t.start()
            assert entered.wait(timeout=2)
            t.join()

    def test_released_on_exception(self):
        locks = KeyedLock()
        try:
            with locks.hold("a"):
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        assert len(locks) == 0
        with locks.hold("a"):
            pass


def test_concurrent_grants_in_memory(engine):
    subject = Subject.group("mods")

    def worker(n: int):
        for i in range(10):
            engine.grant(subject, f"cmd.w{n}.p{i}")

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(engine.list_granted(subject)) == 60
    assert len(engine.locks) == 0


def test_grant_and_revoke_interleaved(engine, user):
    engine.grant(user, "keep.me")

    def churn():
        for _ in range(20):
            engine.grant(user, "flip.flop")
            engine.revoke(user, "flip.flop")

    threads = [threading.Thread(target=churn) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    # the last serialized operation is always a revoke; its parent stays behind
    assert engine.list_granted(user) == ["keep.me", "flip"]
