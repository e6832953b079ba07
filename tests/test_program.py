import pytest

from sdkmeta.program import ResolutionProgram, returns_retained


def _method(prog, cls, sel, is_cm=False, is_init=False, dep=False, var=False):
    prog.method_decl.append((cls, sel, is_cm, is_init, dep, var))


@pytest.fixture
def foundation():
    prog = ResolutionProgram()
    for name, parent in [
        ("NSObject", ""),
        ("NSString", "NSObject"),
        ("NSMutableString", "NSString"),
    ]:
        prog.class_decl.append((name, parent, "Foundation"))
        if parent:
            prog.inherits_from.append((name, parent))

    _method(prog, "NSObject", "init", is_init=True)
    _method(prog, "NSObject", "new", is_cm=True)
    _method(prog, "NSObject", "alloc", is_cm=True)
    _method(prog, "NSObject", "description")
    _method(prog, "NSString", "init", is_init=True)
    _method(prog, "NSString", "initWithString:", is_init=True)
    _method(prog, "NSString", "characterAtIndex:")
    _method(prog, "NSString", "compare:")
    _method(prog, "NSString", "string", is_cm=True)
    _method(prog, "NSString", "encodeWithCoder:")
    _method(prog, "NSMutableString", "appendString:")
    _method(prog, "NSMutableString", "initWithCapacity:", is_init=True)
    _method(prog, "NSMutableString", "compare:")

    prog.property_decl.append(("NSString", "length", True, False, False))
    prog.property_decl.append(("NSString", "hash", True, False, False))
    prog.property_decl.append(("NSMutableString", "hash", False, False, False))

    prog.conforms_to.append(("NSString", "NSCoding"))
    prog.protocol_decl.append(("NSCoding",))
    prog.protocol_method.append(("NSCoding", "encodeWithCoder:", True, False))
    prog.protocol_method.append(("NSCoding", "initWithCoder:", True, False))
    prog.run()
    return prog


def test_nsmutablestring_ancestors_include_nsstring_and_nsobject(foundation):
    ancestors = {a for c, a in foundation.ancestor if c == "NSMutableString"}
    assert ancestors == {"NSString", "NSObject"}


def test_nsobject_has_no_ancestors(foundation):
    assert [t for t in foundation.ancestor if t[0] == "NSObject"] == []


def test_nsmutablestring_inherits_nsstring_methods(foundation):
    assert (
        "NSMutableString",
        "characterAtIndex:",
        False,
        False,
        False,
        False,
        "NSString",
    ) in foundation.effective_method


def test_effective_method_count_for_nsstring(foundation):
    count = sum(1 for t in foundation.effective_method if t[0] == "NSString")
    own = sum(1 for t in foundation.method_decl if t[0] == "NSString")
    assert count >= own
    assert count == 9


def test_own_methods_appear_in_effective_methods(foundation):
    effective = {(t[1], t[2]) for t in foundation.effective_method if t[0] == "NSString"}
    for cls, sel, is_cm, *_ in foundation.method_decl:
        if cls == "NSString":
            assert (sel, is_cm) in effective


def test_overridden_method_uses_child_version(foundation):
    own = {(t[1], t[2]) for t in foundation.method_decl if t[0] == "NSMutableString"}
    for cls, sel, is_cm, _i, _d, _v, origin in foundation.effective_method:
        if cls == "NSMutableString" and (sel, is_cm) in own:
            assert origin == "NSMutableString"
    origins = {
        t[6] for t in foundation.effective_method if t[0] == "NSMutableString" and t[1] == "init"
    }
    assert origins == {"NSString"}


def test_nsmutablestring_inherits_nsstring_properties(foundation):
    parent = {t[1] for t in foundation.property_decl if t[0] == "NSString"}
    child = {t[1] for t in foundation.effective_property if t[0] == "NSMutableString"}
    assert parent <= child


def test_overridden_property_uses_child_version(foundation):
    hashes = [
        t for t in foundation.effective_property if t[0] == "NSMutableString" and t[1] == "hash"
    ]
    assert hashes == [("NSMutableString", "hash", False, False, False, "NSMutableString")]


def test_init_methods_return_retained(foundation):
    inits = [(t[0], t[1]) for t in foundation.effective_method if t[3] and not t[2]]
    assert inits
    retained = {(c, s) for c, s, _ in foundation.returns_retained_method}
    for pair in inits:
        assert pair in retained


def test_new_class_methods_return_retained(foundation):
    assert any(s == "new" and cm for _, s, cm in foundation.returns_retained_method)
    assert ("NSMutableString", "new", True) in foundation.returns_retained_method


def test_regular_methods_not_retained(foundation):
    assert not any(s == "compare:" for _, s, _ in foundation.returns_retained_method)


def test_nscoding_methods_matched(foundation):
    assert foundation.satisfies_protocol_method == [
        ("NSString", "encodeWithCoder:", False, "NSCoding")
    ]


def test_instance_and_class_methods_are_separate_namespaces():
    prog = ResolutionProgram()
    prog.inherits_from.append(("Child", "Base"))
    _method(prog, "Base", "make", is_cm=True)
    _method(prog, "Child", "make", is_cm=False)
    prog.run()
    child = sorted((t[1], t[2], t[6]) for t in prog.effective_method if t[0] == "Child")
    assert child == [("make", False, "Child"), ("make", True, "Base")]


def test_inheritance_cycle_terminates():
    prog = ResolutionProgram()
    prog.inherits_from.extend([("A", "B"), ("B", "A")])
    _method(prog, "A", "foo")
    prog.run()
    assert set(prog.ancestor) == {("A", "B"), ("B", "A"), ("A", "A"), ("B", "B")}
    assert ("B", "foo", False, False, False, False, "A") in prog.effective_method


def test_run_is_idempotent(foundation):
    before = (
        list(foundation.ancestor),
        list(foundation.effective_method),
        list(foundation.effective_property),
        list(foundation.returns_retained_method),
        list(foundation.satisfies_protocol_method),
    )
    foundation.run()
    after = (
        foundation.ancestor,
        foundation.effective_method,
        foundation.effective_property,
        foundation.returns_retained_method,
        foundation.satisfies_protocol_method,
    )
    assert before == tuple(after)


def test_derived_relations_are_sorted(foundation):
    assert foundation.effective_method == sorted(foundation.effective_method)
    assert foundation.ancestor == sorted(foundation.ancestor)


@pytest.mark.parametrize(
    "selector, class_method, expected",
    [
        ("init", False, True),
        ("initWithString:", False, True),
        ("init", True, False),
        ("new", True, True),
        ("newObject", True, True),
        ("alloc", True, True),
        ("copy", False, True),
        ("copyWithZone:", False, True),
        ("mutableCopy", False, True),
        ("compare:", False, False),
        ("newline", False, False),
        ("initialize", False, False),
        ("description", False, False),
        ("_copy", False, True),
    ],
)
def test_returns_retained(selector, class_method, expected):
    assert returns_retained(selector, class_method) is expected