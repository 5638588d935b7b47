import pytest

from rtosc.message import decode_message, encode_message
from rtosc.miditable import INVALID_MIDI, MidiTable
from rtosc.ports import Port, Ports, RtData

LINEAR = ":min\0=0\0:max\0=10\0:scale\0=linear\0\0"
LOG = ":min\0=1\0:max\0=100\0:scale\0=logarithmic\0\0"


@pytest.fixture
def setup():
    root = Ports([
        Port("foo::f", LINEAR),
        Port("num::i"),
        Port("tog::T:F"),
        Port("chr::c"),
        Port("plain"),
        Port("dir/", "", Ports([Port("x::i")])),
    ])
    errors, events, mods = [], [], []
    table = MidiTable(root, lambda r, p: errors.append((r, p)), events.append,
                      lambda *a: mods.append(a))
    return table, errors, events, mods


def test_translate_linear():
    assert MidiTable.translate(127, LINEAR) == pytest.approx(10.0)
    assert MidiTable.translate(0, LINEAR) == pytest.approx(0.0)
    assert MidiTable.translate(64, LINEAR) == pytest.approx(5.0)


def test_translate_logarithmic_ends():
    assert MidiTable.translate(0, LOG) == pytest.approx(1.0)
    assert MidiTable.translate(127, LOG) == pytest.approx(100.0)


def test_translate_missing_properties():
    assert MidiTable.translate(100, ":min\0=0\0\0") == 0.0


def test_add_elm_binds(setup):
    table, errors, _, mods = setup
    table.add_elm(1, 7, "/foo")
    entry = table.get(1, 7)
    assert table.has(1, 7)
    assert entry.type == "f" and entry.path == "/foo"
    assert mods == [("ADD", "/foo", LINEAR, 1, 7)]
    assert errors == []


def test_add_elm_replace(setup):
    table, _, _, mods = setup
    table.add_elm(1, 7, "/foo")
    table.add_elm(1, 7, "/num")
    assert table.get(1, 7).type == "i"
    assert mods[-1][0] == "REPLACE"


def test_bad_paths(setup):
    table, errors, _, _ = setup
    table.add_elm(0, 1, "/missing")
    table.add_elm(0, 2, "/dir/")
    assert errors == [("Bad path", "/missing"), ("Bad path", "/dir/")]
    assert not table.has(0, 1)


def test_port_without_args_fails(setup):
    table, errors, _, _ = setup
    table.add_elm(0, 3, "/plain")
    assert errors == [("Failed to read metadata", "/plain")]
    assert not table.has(0, 3)


def test_process_types(setup):
    table, _, events, _ = setup
    table.add_elm(0, 1, "/num")
    table.add_elm(0, 2, "/tog")
    table.add_elm(0, 3, "/chr")
    table.add_elm(0, 4, "/foo")
    table.process(0, 1, 42)
    table.process(0, 2, 10)
    table.process(0, 2, 100)
    table.process(0, 3, 9)
    table.process(0, 4, 127)
    decoded = [decode_message(e) for e in events]
    assert decoded[0].args == (42,)
    assert decoded[1].typetags == "F"
    assert decoded[2].typetags == "T"
    assert decoded[3].typetags == "c" and decoded[3].args == (9,)
    assert decoded[4].args[0] == pytest.approx(10.0)


def test_learn_then_controller(setup):
    table, _, _, _ = setup
    table.learn("/num")
    assert table.unhandled_path == "/num"
    table.process(2, 5, 0)
    assert table.has(2, 5)
    assert table.unhandled_ctl == INVALID_MIDI


def test_learn_too_long(setup):
    table, errors, _, _ = setup
    path = "/" + "a" * 200
    table.learn(path)
    assert errors == [("String too long", path)]


def test_clear_entry(setup):
    table, _, _, mods = setup
    table.add_elm(1, 1, "/num")
    table.clear_entry("/num")
    assert not table.has(1, 1)
    assert mods[-1] == ("DEL", "/num", "", -1, -1)


def test_ports_drive_table(setup):
    table, _, _, _ = setup
    ports = Ports([table.learn_port(), table.unlearn_port(),
                   table.register_port()])
    ports.dispatch(encode_message("/register", "iis", 3, 4, "/num"), RtData())
    assert table.get(3, 4).path == "/num"
    ports.dispatch(encode_message("/unlearn", "s", "/num"), RtData())
    assert not table.has(3, 4)
    ports.dispatch(encode_message("/learn", "s", "/tog"), RtData())
    assert table.unhandled_path == "/tog"