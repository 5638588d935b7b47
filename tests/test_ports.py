import pytest

from rtosc.message import Message, encode_message
from rtosc.ports import (Port, Ports, RtData, clone_ports, collapse_path,
                         match_path, match_port, merge_ports)


def null_fn(msg, data):
    pass


class Obj:
    def __init__(self):
        self.b = 0


def set_b(msg, data):
    data.seen_loc = data.loc
    if msg.typetags:
        data.obj.b = msg.argument(0)


d_ports = Ports([Port("e", "", None, null_fn)])
c_ports = Ports([Port("d/", "", d_ports, null_fn)])
a_ports = Ports([Port("b/c/", "", c_ports, null_fn),
                 Port("b/x/", "", None, null_fn)])
tree = Ports([Port("a/", "", a_ports, null_fn)])


def test_dispatch_leaf_updates_object_and_loc():
    ports = Ports([Port("b::c", "", None, set_b)])
    obj = Obj()
    data = RtData(obj, loc="")
    ports.dispatch(encode_message("b", "c", 7), data)
    assert data.matches == 1
    assert obj.b == 7
    assert data.seen_loc == "/b"
    assert data.loc == "/"


def test_dispatch_default_handler_via_clone():
    calls = []
    base = Ports([Port("b::c", "", None, null_fn)])
    cloned = clone_ports(base, [("b::c", set_b),
                                ("*", lambda m, d: calls.append(m.path))])
    data = RtData(Obj(), loc="")
    cloned.dispatch(Message("/zzz"), data)
    assert calls == ["zzz"]
    assert data.matches == 1


def test_dispatch_numbered_port_appends_real_segment():
    seen = []
    ports = Ports([Port("a#3/", "", None,
                        lambda m, d: seen.append(d.loc))])
    data = RtData(None, loc="")
    ports.dispatch(Message("/a1/x"), data)
    ports.dispatch(Message("/a5/x"), data)
    assert seen == ["/a1/"]


def test_dispatch_without_loc_calls_all_matches():
    seen = []
    ports = Ports([Port("x", "", None, lambda m, d: seen.append(1)),
                   Port("x#2", "", None, lambda m, d: seen.append(2)),
                   Port("x:", "", None, lambda m, d: seen.append(3))])
    data = RtData()
    ports.dispatch(Message("/x"), data)
    assert seen == [1, 3]
    assert data.matches == 0


def test_match_port_arg_specs():
    assert match_port("x::i", Message("x")) == ""
    assert match_port("x::i", Message("x", "i", (1,))) == ""
    assert match_port("x:i:", Message("x", "f", (1.0,))) is None
    assert match_port("x:", Message("x", "i", (1,))) is None
    assert match_path("a/", "a/b/c") == "b/c"
    assert match_path("a#3/", "a3/") is None


def test_apropos():
    assert tree.apropos("/a/b/c/d/e") is d_ports.ports[0]
    assert tree.apropos("/a/b/c/d") is c_ports.ports[0]
    assert tree.apropos("/a/b/c") is a_ports.ports[0]
    assert tree.apropos("/a/b") is a_ports.ports[0]
    assert tree.apropos("/a") is tree.ports[0]
    assert tree.apropos("") is None
    assert tree.apropos("doesnt-exist") is None


def test_getitem():
    ports = Ports([Port("self:", "", None, null_fn),
                   Port("foo::i", "", None, null_fn)])
    assert ports["foo"].name == "foo::i"
    assert ports["self:"].name == "self:"
    with pytest.raises(KeyError):
        ports["fo"]


def test_collapse_path():
    assert collapse_path("/a/b/../c") == "/a/c"
    assert collapse_path("a/b/..") == "a"
    assert collapse_path("/a/b/") == "/a/b/"


def test_merge_and_clone():
    first = Ports([Port("a", "", None, null_fn), Port("b", "", None, null_fn)])
    second = Ports([Port("b", "x", None, null_fn), Port("c", "", None, null_fn)])
    merged = merge_ports(first, second)
    assert [p.name for p in merged] == ["a", "b", "c"]
    assert merged["b"].metadata == ""
    with pytest.raises(KeyError):
        clone_ports(first, [("missing", null_fn)])


def test_index_stack():
    data = RtData()
    data.push_index(3)
    data.push_index(5)
    assert data.idx[:3] == [5, 3, 0]
    data.pop_index()
    assert data.idx[:2] == [3, 0]


def test_reply_and_broadcast_build_messages():
    class Catch(RtData):
        def __init__(self):
            super().__init__()
            self.out = []

        def reply_message(self, msg):
            self.out.append(msg)

    data = Catch()
    data.reply("/x", "i", 4)
    data.broadcast("/y", "T")
    assert data.out == [encode_message("/x", "i", 4), encode_message("/y", "T")]


def test_port_meta():
    port = Port("p", ":min\0=1\0\0", None, null_fn)
    assert port.meta()["min"] == "1"