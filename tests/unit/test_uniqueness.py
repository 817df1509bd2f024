from __future__ import annotations

import threading

import pytest

from account_import.services.uniqueness import RowTurnstile, UniquenessTracker


def test_claim_once():
    t = UniquenessTracker(["email"])
    assert t.claim("email", "a@x") is True
    assert t.claim("email", "a@x") is False
    assert t.claim("email", "b@x") is True
    assert t.seen("email") == frozenset({"a@x", "b@x"})


def test_fields_are_independent():
    t = UniquenessTracker(["email", "username"])
    assert t.claim("email", "same")
    assert t.claim("username", "same")


def test_concurrent_claims_admit_exactly_one():
    t = UniquenessTracker(["email"])
    barrier = threading.Barrier(32)
    results: list[bool] = []
    lock = threading.Lock()

    def worker():
        barrier.wait()
        ok = t.claim("email", "dup@x")
        with lock:
            results.append(ok)

    threads = [threading.Thread(target=worker) for _ in range(32)]
    for th in threads:
        th.start()
    for th in threads:
        th.join()
    assert results.count(True) == 1
    assert results.count(False) == 31


def test_turnstile_admits_positions_in_order():
    turnstile = RowTurnstile()
    order: list[int] = []

    def worker(position: int):
        with turnstile.turn(position):
            order.append(position)

    # start later positions first
    threads = [threading.Thread(target=worker, args=(i,)) for i in reversed(range(8))]
    for th in threads:
        th.start()
    for th in threads:
        th.join(timeout=5)
    assert order == list(range(8))


def test_turnstile_advances_when_turn_raises():
    turnstile = RowTurnstile()
    with pytest.raises(RuntimeError):
        with turnstile.turn(0):
            raise RuntimeError("boom")

    entered = threading.Event()

    def worker():
        with turnstile.turn(1):
            entered.set()

    t = threading.Thread(target=worker)
    t.start()
    t.join(timeout=5)
    assert entered.is_set()
