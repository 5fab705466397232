import threading
import time

import pytest

from pufu.watchdog import Watchdog


@pytest.fixture
def fired():
    return threading.Event()


@pytest.fixture
def watchdog(fired):
    wd = Watchdog(fired.set)
    wd.start()
    yield wd
    wd.stop()


def _wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while not predicate() and time.monotonic() < deadline:
        time.sleep(0.01)
    return predicate()


def test_barks_after_timeout(watchdog, fired):
    watchdog.arm(20)
    assert fired.wait(2.0) is True
    assert watchdog.armed is False


def test_disarm_prevents_bark(watchdog, fired):
    watchdog.arm(200)
    watchdog.disarm()
    assert watchdog.armed is False
    assert fired.wait(0.4) is False
    assert watchdog.armed is False


def test_set_rollback_replaces_callback(watchdog, fired):
    other = threading.Event()
    watchdog.set_rollback(other.set)
    watchdog.arm(20)
    assert other.wait(2.0) is True
    assert fired.is_set() is False


def test_rearm_fires_again():
    calls = []
    done = threading.Event()

    def rollback():
        calls.append(time.monotonic())
        if len(calls) >= 2:
            done.set()

    wd = Watchdog(rollback)
    wd.start()
    try:
        wd.arm(10)
        assert _wait_until(lambda: len(calls) == 1) is True
        assert _wait_until(lambda: wd.armed is False) is True
        wd.arm(10)
        assert done.wait(2.0) is True
        assert _wait_until(lambda: wd.armed is False) is True
    finally:
        wd.stop()
    assert len(calls) == 2


def test_stop_ends_thread(fired):
    wd = Watchdog(fired.set)
    wd.start()
    assert wd.running is True
    wd.stop()
    assert wd.running is False


def test_start_twice_raises(watchdog):
    with pytest.raises(RuntimeError):
        watchdog.start()