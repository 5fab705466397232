import pytest

from pufu.logger import (
    CRASH_LOG_FOOTER,
    CRASH_LOG_HEADER,
    DEFAULT_CAPACITY,
    MAX_LINE_LENGTH,
    CrashLog,
)


def test_lines_keep_insertion_order():
    log = CrashLog(capacity=8)
    for word in ["alpha", "beta", "gamma"]:
        log.append(word)
    assert log.lines() == ["alpha", "beta", "gamma"]


def test_oldest_lines_are_dropped_when_full():
    log = CrashLog(capacity=3)
    for word in ["a", "b", "c", "d", "e"]:
        log.append(word)
    assert log.lines() == ["c", "d", "e"]
    assert len(log) == 3


def test_default_capacity_wraps():
    log = CrashLog()
    for number in range(DEFAULT_CAPACITY + 2):
        log.append(str(number))
    lines = log.lines()
    assert len(lines) == DEFAULT_CAPACITY
    assert lines[0] == "2"
    assert lines[-1] == str(DEFAULT_CAPACITY + 1)


def test_long_lines_are_truncated():
    log = CrashLog(capacity=2)
    log.append("x" * 300)
    assert log.lines()[0] == "x" * MAX_LINE_LENGTH


def test_invalid_capacity_rejected():
    with pytest.raises(ValueError):
        CrashLog(capacity=0)


def test_dump_writes_header_lines_and_footer(tmp_path):
    log = CrashLog(capacity=4)
    log.append("first")
    log.append("second")
    target = tmp_path / "system.log"
    log.dump(target)
    text = target.read_text(encoding="utf-8")
    assert text.startswith(CRASH_LOG_HEADER + "\n")
    assert text.endswith("\n" + CRASH_LOG_FOOTER + "\n")
    assert "Dump Time: " in text
    assert text.index("first\n") < text.index("second\n")


def test_dump_of_wrapped_log_starts_at_oldest(tmp_path):
    log = CrashLog(capacity=2)
    for word in ["one", "two", "three"]:
        log.append(word)
    target = tmp_path / "crash.log"
    log.dump(target)
    body = target.read_text(encoding="utf-8")
    assert "one\n" not in body
    assert body.index("two\n") < body.index("three\n")