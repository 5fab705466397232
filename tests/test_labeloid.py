import pytest

from pufu.labeloid import CastingMode, Labeloid, parse_kv, strip_quotes


class FakeScene:
    def __init__(self):
        self.entities = []

    def create_entity(self, name):
        self.entities.append(name)


def _make(tmp_path, text):
    path = tmp_path / "scene.pufu"
    path.write_text(text)
    return path


def test_parse_kv_plain():
    assert parse_kv("gear:engranaje") == ("gear", "engranaje")


def test_parse_kv_quoted():
    assert parse_kv('window:"ventana"') == ("window", "ventana")


def test_parse_kv_without_colon():
    assert parse_kv("nothing here") is None


def test_strip_quotes():
    assert strip_quotes('"hola"') == "hola"
    assert strip_quotes("hola") == "hola"
    assert strip_quotes('"') == '"'


def test_load_scene_declarations_and_delegation(tmp_path):
    path = _make(
        tmp_path,
        "_pufu::init\n"
        "_pufu::meow\n"
        '  a = "alpha", b = "beta"\n'
        "  win.set(rect: 1)\n"
        "_pufu::stop\n"
        '  c = "gamma"\n',
    )
    scene = FakeScene()
    lines = []
    lab = Labeloid(scene, lambda sc, line: lines.append((sc, line)))
    created = lab.load_scene(path)
    assert created == ["alpha", "beta"]
    assert scene.entities == ["alpha", "beta"]
    assert lines == [(scene, "  win.set(rect: 1)")]


def test_meow_requires_init(tmp_path):
    path = _make(tmp_path, '_pufu::meow\nx = "lost"\n')
    scene = FakeScene()
    assert Labeloid(scene).load_scene(path) == []
    assert scene.entities == []


def test_paw_block_ends_meow(tmp_path):
    path = _make(
        tmp_path,
        '_pufu::init\n_pufu::meow\nx = "kept"\n_pufu::paw\ny = "dropped"\n',
    )
    scene = FakeScene()
    assert Labeloid(scene).load_scene(path) == ["kept"]


def test_cast_meow_loads_scene(tmp_path):
    path = _make(tmp_path, '_pufu::init\n_pufu::meow\nw = "ventana"\n')
    scene = FakeScene()
    assert Labeloid(scene).cast(path, CastingMode.MEOW_TO_PAW) == ["ventana"]
    assert scene.entities == ["ventana"]


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        Labeloid(FakeScene()).load_scene(tmp_path / "absent.pufu")