import io

import pytest

from pufu.crystal import (
    Crystal,
    CrystalGate,
    Gate,
    Netlist,
    gate_execute,
    gate_type,
    hash_id,
    load_netlist,
)


def _crystal(tmp_path):
    out = io.StringIO()
    return Crystal(store_path=tmp_path / "store.txt", out=out), out


def test_gate_type_known_names():
    assert gate_type("XOR") == Gate.XOR == 0x6
    assert gate_type("ONE") == 0xF
    assert gate_type("AXE") == 0xD


def test_gate_type_unknown_is_zero():
    assert gate_type("FOO") == Gate.ZER


@pytest.mark.parametrize("op", range(16))
@pytest.mark.parametrize("a", [0, 1])
@pytest.mark.parametrize("b", [0, 1])
def test_complementary_gates(op, a, b):
    assert gate_execute(op, a, b) == 1 - gate_execute(15 - op, a, b)


@pytest.mark.parametrize("a", [0, 1])
@pytest.mark.parametrize("b", [0, 1])
def test_constant_gates(a, b):
    assert gate_execute(Gate.ZER, a, b) == 0
    assert gate_execute(Gate.ONE, a, b) == 1
    assert gate_execute(Gate.TIE, a, b) == a
    assert gate_execute(Gate.STA, a, b) == b


def test_and_gate():
    assert gate_execute(Gate.AND, 1, 1) == 1
    assert gate_execute(Gate.AND, 1, 0) == 0


def test_inputs_normalised_and_opcode_masked():
    assert gate_execute(Gate.TIE, 5, 0) == 1
    assert gate_execute(0x10 | Gate.AND, 1, 1) == gate_execute(Gate.AND, 1, 1)


def test_hash_is_stable_and_positive():
    assert hash_id("g1") == hash_id("g1")
    assert 0 <= hash_id("g1") < 2 ** 31
    assert hash_id("g1") != hash_id("g2")


def test_netlist_find_returns_first_match():
    first = CrystalGate(id=3, opcode=Gate.ZER, type=Gate.AND)
    second = CrystalGate(id=3, opcode=Gate.ZER, type=Gate.XOR)
    net = Netlist(gates=[first, second])
    assert net.find(3) is first
    assert net.find(4) is None


def test_load_netlist_parses_gates(tmp_path):
    path = tmp_path / "circuit.crystal"
    path.write_text("# comment\n\ng1 AXE AND 1 g2\nOUTPUT AXE TIE g1 0\n")
    net = load_netlist(path)
    assert len(net) == 1
    gate = net.gates[0]
    assert gate.id == hash_id("g1")
    assert gate.opcode == Gate.AXE
    assert gate.type == Gate.AND
    assert (gate.input1_id, gate.input1_val) == (-1, 1)
    assert gate.input2_id == hash_id("g2")
    assert net.output_gate_id == hash_id("g1")


def test_load_netlist_quoted_input(tmp_path):
    path = tmp_path / "circuit.crystal"
    path.write_text('n DOZ TIE "nimbus" 0\n')
    gate = load_netlist(path).gates[0]
    assert gate.helicoid_data == "nimbus"
    assert gate.input1_id == -1


def test_pufu_file_reads_only_claw_block(tmp_path):
    text = "g1 AND TIE 1 0\n_claw::init\ng2 AND TIE 1 0\n_claw::end\ng3 AND TIE 1 0\n"
    pufu_path = tmp_path / "prog.pufu"
    pufu_path.write_text(text)
    other_path = tmp_path / "prog.crystal"
    other_path.write_text(text)
    assert [g.id for g in load_netlist(pufu_path).gates] == [hash_id("g2")]
    assert [g.id for g in load_netlist(other_path).gates] == [hash_id("g1"), hash_id("g2")]


def test_load_missing_file_raises(tmp_path):
    crystal, _ = _crystal(tmp_path)
    with pytest.raises(FileNotFoundError):
        crystal.load(tmp_path / "missing.crystal")


def test_load_reports_gate_count(tmp_path):
    path = tmp_path / "c.crystal"
    path.write_text("a NOD TIE 1 0\nb NOD TIE a 0\n")
    crystal, out = _crystal(tmp_path)
    net = crystal.load(path)
    assert len(net) == 2
    assert "Crystal: Loaded netlist with 2 gates." in out.getvalue()


def test_step_without_netlist(tmp_path):
    crystal, _ = _crystal(tmp_path)
    assert crystal.step() == 0


def test_step_propagates_signals(tmp_path):
    path = tmp_path / "c.crystal"
    path.write_text("b NOD AND a 1\na NOD TIE 1 0\nOUTPUT NOD TIE b 0\n")
    crystal, _ = _crystal(tmp_path)
    crystal.load(path)
    assert crystal.step() == 1
    assert crystal.netlist.find(hash_id("a")).output_val == 1


def test_step_stores_and_prints_data(tmp_path):
    path = tmp_path / "c.crystal"
    path.write_text('n DOZ TIE "nimbus" 0\ns STA TIE n 0\no AXE TIE n 0\n')
    crystal, out = _crystal(tmp_path)
    crystal.load(path)
    crystal.step()
    assert (tmp_path / "store.txt").read_text() == "nombre : nimbus\n"
    assert "nombre : nimbus\n" in out.getvalue()
    assert crystal.netlist.find(hash_id("o")).helicoid_data == "nimbus"


def test_axe_without_data_prints_bit(tmp_path):
    path = tmp_path / "c.crystal"
    path.write_text("x AXE ONE 0 0\n")
    crystal, out = _crystal(tmp_path)
    crystal.load(path)
    out.seek(0)
    out.truncate()
    assert crystal.step() == 0
    assert out.getvalue() == "1\n"