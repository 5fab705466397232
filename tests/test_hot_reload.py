import os

import pytest

from pufu.hot_reload import HotReload
from pufu.parser import Program


def _touch_later(path, content):
    before = os.stat(path)
    path.write_text(content)
    os.utime(path, ns=(before.st_atime_ns, before.st_mtime_ns + 10**9))


@pytest.fixture
def source(tmp_path):
    path = tmp_path / "node.pufu"
    path.write_text("mov r0 1\nadd r0 2\n")
    return path


def test_start_parses_file(source):
    reload = HotReload(source)
    reload.start()
    expected = Program()
    expected.parse_file(source)
    assert reload.is_running is True
    assert [i.op for i in reload.program] == [i.op for i in expected]


def test_start_twice_raises(source):
    reload = HotReload(source)
    reload.start()
    with pytest.raises(RuntimeError):
        reload.start()


def test_start_missing_file(tmp_path):
    reload = HotReload(tmp_path / "missing.pufu")
    with pytest.raises(FileNotFoundError):
        reload.start()
    assert reload.is_running is False


def test_check_without_start_raises(source):
    with pytest.raises(RuntimeError):
        HotReload(source).check()


def test_check_unchanged_is_false(source):
    reload = HotReload(source)
    reload.start()
    assert reload.check() is False


def test_check_detects_modification(source):
    reload = HotReload(source)
    reload.start()
    _touch_later(source, "loop:\njmp loop\n")
    assert reload.check() is True
    assert reload.program.find_label("loop") == 0
    assert reload.check() is False


def test_check_after_file_removed_is_false(source):
    reload = HotReload(source)
    reload.start()
    os.remove(source)
    assert reload.check() is False


def test_stop_then_check_raises(source):
    reload = HotReload(source)
    reload.start()
    reload.stop()
    assert reload.is_running is False
    with pytest.raises(RuntimeError):
        reload.check()