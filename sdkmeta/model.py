"""Intermediate representation of framework API metadata and its JSON form."""

import enum
import json
from dataclasses import MISSING, dataclass, field, fields, is_dataclass
from typing import Any, Optional, Union, get_args, get_origin


class TypeKind(enum.Enum):
    """The shape of a referenced type."""

    PRIMITIVE = "primitive"
    CLASS = "class"
    ID = "id"
    INSTANCETYPE = "instancetype"
    CLASS_REF = "class_ref"
    SELECTOR = "selector"
    BLOCK = "block"
    POINTER = "pointer"
    STRUCT = "struct"
    ALIAS = "alias"


_NAMED_KINDS = {TypeKind.PRIMITIVE, TypeKind.CLASS, TypeKind.STRUCT, TypeKind.ALIAS}
_FRAMEWORK_KINDS = {TypeKind.CLASS, TypeKind.ALIAS}
_PARAM_KINDS = {TypeKind.CLASS, TypeKind.BLOCK}


@dataclass
class TypeRef:
    """A reference to a type, with its nullability."""

    kind: TypeKind
    name: Optional[str] = None
    framework: Optional[str] = None
    params: list["TypeRef"] = field(default_factory=list)
    return_type: Optional["TypeRef"] = None
    nullable: bool = False

    def __post_init__(self) -> None:
        if self.kind in _NAMED_KINDS and not self.name:
            raise ValueError(f"type kind {self.kind.value!r} requires a name")
        if self.kind is TypeKind.BLOCK and self.return_type is None:
            self.return_type = TypeRef.void()

    @classmethod
    def void(cls) -> "TypeRef":
        """The `void` primitive."""
        return cls(TypeKind.PRIMITIVE, name="void")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind.value}
        if self.nullable:
            data["nullable"] = True
        if self.kind in _NAMED_KINDS:
            data["name"] = self.name
        if self.kind in _FRAMEWORK_KINDS and self.framework is not None:
            data["framework"] = self.framework
        if self.kind in _PARAM_KINDS:
            data["params"] = [p.to_dict() for p in self.params]
        if self.kind is TypeKind.BLOCK and self.return_type is not None:
            data["return_type"] = self.return_type.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "TypeRef":
        if not isinstance(data, dict):
            raise ValueError(f"type reference must be an object, got {type(data).__name__}")
        raw_kind = data.get("kind")
        try:
            kind = TypeKind(raw_kind)
        except ValueError:
            raise ValueError(f"unknown type kind: {raw_kind!r}") from None
        return_type = data.get("return_type")
        return cls(
            kind,
            name=data.get("name"),
            framework=data.get("framework"),
            params=[cls.from_dict(p) for p in data.get("params", [])],
            return_type=cls.from_dict(return_type) if return_type is not None else None,
            nullable=bool(data.get("nullable", False)),
        )


_WELL_KNOWN_TYPEDEFS: dict[str, tuple[TypeKind, Optional[str]]] = {
    "instancetype": (TypeKind.INSTANCETYPE, None),
    "id": (TypeKind.ID, None),
    "Class": (TypeKind.CLASS_REF, None),
    "SEL": (TypeKind.SELECTOR, None),
    "BOOL": (TypeKind.PRIMITIVE, "bool"),
    "NSInteger": (TypeKind.PRIMITIVE, "int64"),
    "NSUInteger": (TypeKind.PRIMITIVE, "uint64"),
    "CGFloat": (TypeKind.PRIMITIVE, "double"),
    "NSTimeInterval": (TypeKind.PRIMITIVE, "double"),
}


def well_known_typedef(name: str) -> Optional[TypeRef]:
    """Return the fixed mapping of a well-known ObjC typedef, or None."""
    entry = _WELL_KNOWN_TYPEDEFS.get(name)
    if entry is None:
        return None
    kind, primitive = entry
    return TypeRef(kind, name=primitive)


_PRIMITIVE_NAMES = {
    "Bool": "bool",
    "CharS": "int8",
    "CharU": "int8",
    "SChar": "int8",
    "UChar": "uint8",
    "Short": "int16",
    "UShort": "uint16",
    "Int": "int32",
    "UInt": "uint32",
    "Long": "int64",
    "ULong": "uint64",
    "LongLong": "int64",
    "ULongLong": "uint64",
    "Float": "float",
    "Double": "double",
    "LongDouble": "double",
}


def primitive_name(kind: str) -> Optional[str]:
    """Map a clang builtin type kind (e.g. ``"Int"``) to its IR primitive name."""
    return _PRIMITIVE_NAMES.get(kind)


class DeclarationSource(enum.Enum):
    """Where a declaration was collected from."""

    OBJC_HEADER = "objc_header"
    SWIFT_INTERFACE = "swift_interface"


@dataclass
class Availability:
    introduced: Optional[str] = None
    deprecated: Optional[str] = None


@dataclass
class SourceProvenance:
    header: Optional[str] = None
    line: Optional[int] = None
    availability: Optional[Availability] = None


@dataclass
class DocRefs:
    header_comment: Optional[str] = None
    apple_doc_url: Optional[str] = None
    usr: Optional[str] = None


@dataclass
class Param:
    name: str
    param_type: TypeRef = field(metadata={"key": "type"})


@dataclass
class Method:
    selector: str
    class_method: bool = False
    init_method: bool = False
    params: list[Param] = field(default_factory=list)
    return_type: TypeRef = field(default_factory=TypeRef.void)
    deprecated: bool = False
    variadic: bool = False
    source: Optional[DeclarationSource] = None
    provenance: Optional[SourceProvenance] = None
    doc_refs: Optional[DocRefs] = None
    origin: Optional[str] = None
    category: Optional[str] = None
    overrides: Optional[bool] = None
    returns_retained: Optional[bool] = None
    satisfies_protocol: Optional[str] = None


@dataclass
class Property:
    name: str
    property_type: TypeRef = field(default_factory=TypeRef.void, metadata={"key": "type"})
    readonly: bool = False
    class_property: bool = False
    deprecated: bool = False
    source: Optional[DeclarationSource] = None
    provenance: Optional[SourceProvenance] = None
    doc_refs: Optional[DocRefs] = None
    origin: Optional[str] = None


@dataclass
class CategoryGroup:
    category: str
    origin_framework: str
    methods: list[Method] = field(default_factory=list)


@dataclass
class Class:
    name: str
    superclass: str = ""
    protocols: list[str] = field(default_factory=list)
    properties: list[Property] = field(default_factory=list)
    methods: list[Method] = field(default_factory=list)
    category_methods: list[CategoryGroup] = field(default_factory=list)
    ancestors: list[str] = field(default_factory=list)
    all_methods: list[Method] = field(default_factory=list)
    all_properties: list[Property] = field(default_factory=list)


@dataclass
class Protocol:
    name: str
    inherits: list[str] = field(default_factory=list)
    required_methods: list[Method] = field(default_factory=list)
    optional_methods: list[Method] = field(default_factory=list)
    properties: list[Property] = field(default_factory=list)
    source: Optional[DeclarationSource] = None
    provenance: Optional[SourceProvenance] = None
    doc_refs: Optional[DocRefs] = None


@dataclass
class EnumValue:
    name: str
    value: int


@dataclass
class Enum:
    name: str
    enum_type: TypeRef = field(default_factory=TypeRef.void, metadata={"key": "type"})
    values: list[EnumValue] = field(default_factory=list)
    source: Optional[DeclarationSource] = None
    provenance: Optional[SourceProvenance] = None
    doc_refs: Optional[DocRefs] = None


@dataclass
class StructField:
    name: str
    field_type: TypeRef = field(metadata={"key": "type"})


@dataclass
class Struct:
    name: str
    fields: list[StructField] = field(default_factory=list)
    source: Optional[DeclarationSource] = None
    provenance: Optional[SourceProvenance] = None
    doc_refs: Optional[DocRefs] = None


@dataclass
class Function:
    name: str
    params: list[Param] = field(default_factory=list)
    return_type: TypeRef = field(default_factory=TypeRef.void)
    inline: bool = False
    variadic: bool = False
    source: Optional[DeclarationSource] = None
    provenance: Optional[SourceProvenance] = None
    doc_refs: Optional[DocRefs] = None


@dataclass
class Constant:
    name: str
    constant_type: TypeRef = field(default_factory=TypeRef.void, metadata={"key": "type"})
    source: Optional[DeclarationSource] = None
    provenance: Optional[SourceProvenance] = None
    doc_refs: Optional[DocRefs] = None


@dataclass
class SkippedSymbol:
    name: str
    kind: str
    reason: str


@dataclass(kw_only=True)
class Framework:
    """All declarations of one framework at one pipeline checkpoint."""

    format_version: str = "1.0"
    checkpoint: str = "collected"
    name: str = field(metadata={"key": "framework"})
    sdk_version: Optional[str] = None
    collected_at: Optional[str] = None
    depends_on: list[str] = field(default_factory=list)
    skipped_symbols: list[SkippedSymbol] = field(default_factory=list)
    classes: list[Class] = field(default_factory=list)
    protocols: list[Protocol] = field(default_factory=list)
    enums: list[Enum] = field(default_factory=list)
    structs: list[Struct] = field(default_factory=list)
    functions: list[Function] = field(default_factory=list)
    constants: list[Constant] = field(default_factory=list)
    class_annotations: list[Any] = field(default_factory=list)
    api_patterns: list[Any] = field(default_factory=list)
    enrichment: Any = None
    verification: Any = None
    ir_level: Any = None

    def to_dict(self) -> dict[str, Any]:
        return _dataclass_to_dict(self)

    @classmethod
    def from_dict(cls, data: Any) -> "Framework":
        return _dataclass_from_dict(cls, data)

    def to_json(self) -> str:
        """Serialize as pretty-printed JSON."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, text: str) -> "Framework":
        return cls.from_dict(json.loads(text))


def _encode(value: Any) -> Any:
    if isinstance(value, TypeRef):
        return value.to_dict()
    if isinstance(value, enum.Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        return _dataclass_to_dict(value)
    if isinstance(value, list):
        return [_encode(v) for v in value]
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    return value


def _dataclass_to_dict(obj: Any) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if value is None:
            continue
        out[f.metadata.get("key", f.name)] = _encode(value)
    return out


def _decode(tp: Any, value: Any) -> Any:
    if tp is Any:
        return value
    origin = get_origin(tp)
    if origin is Union:
        if value is None:
            return None
        inner = [a for a in get_args(tp) if a is not type(None)]
        return _decode(inner[0], value)
    if origin is list:
        if not isinstance(value, list):
            raise ValueError(f"expected a list, got {type(value).__name__}")
        (item_type,) = get_args(tp)
        return [_decode(item_type, v) for v in value]
    if tp is TypeRef:
        return TypeRef.from_dict(value)
    if isinstance(tp, type) and issubclass(tp, enum.Enum):
        return tp(value)
    if is_dataclass(tp):
        return _dataclass_from_dict(tp, value)
    return value


def _dataclass_from_dict(cls: type, data: Any) -> Any:
    if not isinstance(data, dict):
        raise ValueError(f"{cls.__name__} must be an object, got {type(data).__name__}")
    kwargs: dict[str, Any] = {}
    for f in fields(cls):
        key = f.metadata.get("key", f.name)
        if key in data:
            kwargs[f.name] = _decode(f.type, data[key])
        elif f.default is MISSING and f.default_factory is MISSING:
            raise ValueError(f"{cls.__name__}: missing field {key!r}")
    return cls(**kwargs)