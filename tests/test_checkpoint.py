import pytest

from sdkmeta.checkpoint import build_resolved_framework, write_resolved_checkpoint
from sdkmeta.facts import load_framework_facts
from sdkmeta.model import (
    Class,
    Framework,
    Method,
    Param,
    Property,
    Protocol,
    TypeKind,
    TypeRef,
)
from sdkmeta.program import ResolutionProgram


def _foundation() -> Framework:
    nsstring_type = TypeRef(TypeKind.CLASS, name="NSString")
    nsobject = Class(
        name="NSObject",
        methods=[
            Method(selector="init", init_method=True, return_type=TypeRef(TypeKind.INSTANCETYPE)),
            Method(selector="new", class_method=True, return_type=TypeRef(TypeKind.INSTANCETYPE)),
            Method(selector="description", return_type=nsstring_type),
        ],
        properties=[Property(name="hash", property_type=TypeRef(TypeKind.PRIMITIVE, name="uint64"), readonly=True)],
    )
    nsstring = Class(
        name="NSString",
        superclass="NSObject",
        protocols=["NSCopying", "NSCoding"],
        methods=[
            Method(selector="init", init_method=True, return_type=TypeRef(TypeKind.INSTANCETYPE)),
            Method(
                selector="characterAtIndex:",
                params=[Param(name="index", param_type=TypeRef(TypeKind.PRIMITIVE, name="uint64"))],
                return_type=TypeRef(TypeKind.PRIMITIVE, name="uint16"),
            ),
            Method(selector="compare:", return_type=TypeRef(TypeKind.PRIMITIVE, name="int64")),
            Method(selector="encodeWithCoder:"),
            Method(selector="copyWithZone:", return_type=TypeRef(TypeKind.ID)),
        ],
        properties=[Property(name="length", property_type=TypeRef(TypeKind.PRIMITIVE, name="uint64"), readonly=True)],
    )
    nsmutablestring = Class(
        name="NSMutableString",
        superclass="NSString",
        methods=[
            Method(selector="appendString:"),
            Method(selector="init", init_method=True, return_type=TypeRef(TypeKind.INSTANCETYPE)),
        ],
    )
    protocols = [
        Protocol(
            name="NSCoding",
            required_methods=[Method(selector="encodeWithCoder:"), Method(selector="initWithCoder:")],
        ),
        Protocol(name="NSCopying", required_methods=[Method(selector="copyWithZone:")]),
    ]
    return Framework(
        name="Foundation",
        classes=[nsobject, nsstring, nsmutablestring],
        protocols=protocols,
    )


def _appkit() -> Framework:
    view = Class(
        name="NSView",
        superclass="NSObject",
        methods=[Method(selector="drawRect:")],
        properties=[Property(name="frame")],
    )
    return Framework(name="AppKit", classes=[view])


def _resolve(*frameworks):
    prog = ResolutionProgram()
    for fw in frameworks:
        load_framework_facts(prog, fw)
    prog.run()
    return [build_resolved_framework(fw, prog) for fw in frameworks]


def _class(fw, name):
    return next(c for c in fw.classes if c.name == name)


def _method(cls, selector, class_method=False):
    return next(
        m for m in cls.all_methods if m.selector == selector and m.class_method == class_method
    )


def test_checkpoint_is_resolved_and_collected_untouched():
    collected = _foundation()
    (resolved,) = _resolve(collected)
    assert resolved.checkpoint == "resolved"
    assert collected.checkpoint == "collected"
    assert _class(collected, "NSMutableString").ancestors == []
    assert _class(collected, "NSString").all_methods == []


def test_ancestors_sorted():
    (resolved,) = _resolve(_foundation())
    assert _class(resolved, "NSMutableString").ancestors == ["NSObject", "NSString"]
    assert _class(resolved, "NSString").ancestors == ["NSObject"]
    assert _class(resolved, "NSObject").ancestors == []


def test_all_methods_sorted_and_complete():
    (resolved,) = _resolve(_foundation())
    nsstring = _class(resolved, "NSString")
    keys = [(m.selector, m.class_method) for m in nsstring.all_methods]
    assert keys == [
        ("characterAtIndex:", False),
        ("compare:", False),
        ("copyWithZone:", False),
        ("description", False),
        ("encodeWithCoder:", False),
        ("init", False),
        ("new", True),
    ]
    for method in nsstring.methods:
        assert (method.selector, method.class_method) in keys


def test_inherited_method_has_origin_and_metadata():
    (resolved,) = _resolve(_foundation())
    nsms = _class(resolved, "NSMutableString")
    inherited = _method(nsms, "characterAtIndex:")
    assert inherited.origin == "NSString"
    assert inherited.params[0].name == "index"
    assert inherited.return_type == TypeRef(TypeKind.PRIMITIVE, name="uint16")
    description = _method(_class(resolved, "NSString"), "description")
    assert description.origin == "NSObject"
    assert description.return_type == TypeRef(TypeKind.CLASS, name="NSString")


def test_own_override_has_no_origin():
    (resolved,) = _resolve(_foundation())
    init = _method(_class(resolved, "NSMutableString"), "init")
    assert init.origin is None
    assert init.returns_retained is True


def test_returns_retained_flags():
    (resolved,) = _resolve(_foundation())
    nsstring = _class(resolved, "NSString")
    assert _method(nsstring, "init").returns_retained is True
    assert _method(nsstring, "new", True).returns_retained is True
    assert _method(nsstring, "copyWithZone:").returns_retained is True
    assert _method(nsstring, "compare:").returns_retained is False


def test_satisfies_protocol_only_for_conforming_class():
    (resolved,) = _resolve(_foundation())
    nsstring = _class(resolved, "NSString")
    assert _method(nsstring, "encodeWithCoder:").satisfies_protocol == "NSCoding"
    assert _method(nsstring, "copyWithZone:").satisfies_protocol == "NSCopying"
    assert _method(nsstring, "compare:").satisfies_protocol is None
    nsms = _class(resolved, "NSMutableString")
    assert _method(nsms, "encodeWithCoder:").satisfies_protocol is None


def test_first_protocol_by_name_wins():
    thing = Class(name="Thing", protocols=["ProtoB", "ProtoA"], methods=[Method(selector="foo")])
    fw = Framework(
        name="Kit",
        classes=[thing],
        protocols=[
            Protocol(name="ProtoB", required_methods=[Method(selector="foo")]),
            Protocol(name="ProtoA", optional_methods=[Method(selector="foo")]),
        ],
    )
    (resolved,) = _resolve(fw)
    assert _method(_class(resolved, "Thing"), "foo").satisfies_protocol == "ProtoA"


def test_properties_inherited_and_sorted():
    (resolved,) = _resolve(_foundation())
    nsms = _class(resolved, "NSMutableString")
    assert [p.name for p in nsms.all_properties] == ["hash", "length"]
    length = next(p for p in nsms.all_properties if p.name == "length")
    assert length.origin == "NSString"
    assert length.readonly is True
    own = next(p for p in _class(resolved, "NSString").all_properties if p.name == "length")
    assert own.origin is None


def test_cross_framework_members_are_minimal():
    _, appkit = _resolve(_foundation(), _appkit())
    view = _class(appkit, "NSView")
    assert view.ancestors == ["NSObject"]
    init = _method(view, "init")
    assert init.origin == "NSObject"
    assert init.init_method is True
    assert init.return_type == TypeRef.void()
    assert init.params == []
    assert init.source is None
    assert init.returns_retained is True
    hash_prop = next(p for p in view.all_properties if p.name == "hash")
    assert hash_prop.origin == "NSObject"
    assert hash_prop.readonly is True
    assert hash_prop.property_type == TypeRef.void()


def test_write_resolved_checkpoint_roundtrips(tmp_path):
    (resolved,) = _resolve(_foundation())
    path = write_resolved_checkpoint(resolved, tmp_path)
    assert path == tmp_path / "Foundation.json"
    loaded = Framework.from_json(path.read_text(encoding="utf-8"))
    assert loaded == resolved
    assert '"checkpoint": "resolved"' in path.read_text(encoding="utf-8")


def test_write_to_missing_directory_fails(tmp_path):
    (resolved,) = _resolve(_foundation())
    with pytest.raises(OSError):
        write_resolved_checkpoint(resolved, tmp_path / "absent")