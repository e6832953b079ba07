"""Assembly of Objective-C/C declarations into framework IR.

Holds the rules that decide which declarations are kept, how they are
deduplicated and merged with their categories, and how provenance and
documentation references are derived.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import PurePath
from typing import Iterable, Optional, Union

from sdkmeta.model import (
    CategoryGroup,
    Class,
    Constant,
    Enum,
    Framework,
    Function,
    Method,
    Property,
    Protocol,
    SkippedSymbol,
    Struct,
)

PathLike = Union[str, "os.PathLike[str]"]

_OBJC_CLASS_USR_PREFIX = "c:objc(cs)"
_DOC_URL_BASE = "https://developer.apple.com/documentation/foundation/"


@dataclass
class ExtractionResult:
    """Declarations gathered for a single framework.

    Each ``add_*`` method returns True when the declaration was kept, and
    False when it was a duplicate by name or filtered out.
    """

    classes: list[Class] = field(default_factory=list)
    protocols: list[Protocol] = field(default_factory=list)
    enums: list[Enum] = field(default_factory=list)
    structs: list[Struct] = field(default_factory=list)
    functions: list[Function] = field(default_factory=list)
    constants: list[Constant] = field(default_factory=list)
    skipped_symbols: list[SkippedSymbol] = field(default_factory=list)
    _seen_classes: set[str] = field(default_factory=set, repr=False)
    _seen_protocols: set[str] = field(default_factory=set, repr=False)
    _seen_enums: set[str] = field(default_factory=set, repr=False)
    _seen_structs: set[str] = field(default_factory=set, repr=False)
    _seen_functions: set[str] = field(default_factory=set, repr=False)
    _seen_constants: set[str] = field(default_factory=set, repr=False)
    _category_methods: dict[str, list[CategoryGroup]] = field(default_factory=dict, repr=False)
    _category_properties: dict[str, list[Property]] = field(default_factory=dict, repr=False)

    @staticmethod
    def _first_sighting(seen: set[str], name: str) -> bool:
        if name in seen:
            return False
        seen.add(name)
        return True

    def add_class(self, cls: Class) -> bool:
        if not self._first_sighting(self._seen_classes, cls.name):
            return False
        self.classes.append(cls)
        return True

    def add_protocol(self, protocol: Protocol) -> bool:
        if not self._first_sighting(self._seen_protocols, protocol.name):
            return False
        self.protocols.append(protocol)
        return True

    def add_enum(self, enumeration: Enum) -> bool:
        if not enumeration.name or not self._first_sighting(self._seen_enums, enumeration.name):
            return False
        self.enums.append(enumeration)
        return True

    def add_struct(self, structure: Struct) -> bool:
        if not structure.name or not self._first_sighting(self._seen_structs, structure.name):
            return False
        self.structs.append(structure)
        return True

    def add_function(self, function: Function) -> bool:
        if not self._first_sighting(self._seen_functions, function.name):
            return False
        if is_skipped_function(function.name):
            return False
        self.functions.append(function)
        return True

    def add_constant(self, constant: Constant) -> bool:
        if not self._first_sighting(self._seen_constants, constant.name):
            return False
        if is_skipped_constant(constant.name):
            return False
        self.constants.append(constant)
        return True

    def add_category(
        self,
        class_name: str,
        category: str,
        framework_name: str,
        methods: Iterable[Method],
        properties: Iterable[Property],
    ) -> None:
        """Record a category's members, to be merged into ``class_name`` by :meth:`finish`."""
        methods = list(methods)
        properties = list(properties)
        if methods:
            group = CategoryGroup(
                category=category, origin_framework=framework_name, methods=methods
            )
            self._category_methods.setdefault(class_name, []).append(group)
        if properties:
            self._category_properties.setdefault(class_name, []).extend(properties)

    def finish(self) -> ExtractionResult:
        """Merge categories into their classes and sort every list by name.

        Categories of classes not in this result are dropped. Calling this
        again is harmless.
        """
        for cls in self.classes:
            groups = self._category_methods.pop(cls.name, None)
            if groups is not None:
                cls.category_methods = groups
            props = self._category_properties.pop(cls.name, None)
            if props is not None:
                cls.properties.extend(props)
        self._category_methods.clear()
        self._category_properties.clear()

        for items in (
            self.classes,
            self.protocols,
            self.enums,
            self.structs,
            self.functions,
            self.constants,
        ):
            items.sort(key=lambda decl: decl.name)
        return self


def apple_doc_url(usr: str) -> Optional[str]:
    """Best-effort documentation URL for an ObjC class-level USR, or None."""
    if not usr.startswith(_OBJC_CLASS_USR_PREFIX):
        return None
    rest = usr[len(_OBJC_CLASS_USR_PREFIX):]
    class_name = rest.split("(", 1)[0]
    return _DOC_URL_BASE + class_name.lower()


def relative_header(path: PathLike, sdk_path: PathLike) -> str:
    """The header path relative to the SDK root, or unchanged if outside it."""
    pure = PurePath(path)
    try:
        return str(pure.relative_to(PurePath(sdk_path)))
    except ValueError:
        return str(pure)


def is_framework_header(
    path: Optional[PathLike], framework_name: str, sdk_path: PathLike
) -> bool:
    """True when ``path`` lies in the public headers of ``framework_name``."""
    if path is None:
        return False
    relative = PurePath(relative_header(path, sdk_path)).as_posix()
    prefix = f"System/Library/Frameworks/{framework_name}.framework/Headers/"
    return relative.startswith(prefix)


def format_version(major: int, minor: Optional[int]) -> str:
    """Render an availability version as ``major`` or ``major.minor``."""
    if minor is None:
        return str(major)
    return f"{major}.{minor}"


def is_init_selector(selector: str, class_method: bool) -> bool:
    """True for instance methods in the ``init`` family."""
    return not class_method and (selector == "init" or selector.startswith("initWith"))


def is_skipped_function(name: str) -> bool:
    """True for compiler intrinsics and internal functions."""
    return name.startswith("__") or name.startswith("_Block_")


def is_skipped_constant(name: str) -> bool:
    """True for internal constants."""
    return name.startswith("__")


def clang_arguments(sdk_path: PathLike) -> list[str]:
    """Arguments for parsing a framework umbrella header as Objective-C."""
    sdk = os.fspath(sdk_path)
    return [
        "-x",
        "objective-c",
        "-isysroot",
        sdk,
        f"-F{sdk}/System/Library/Frameworks",
        "-mmacosx-version-min=10.15",
        "-w",
    ]


def new_collected_framework(
    name: str, sdk_version: Optional[str], result: ExtractionResult
) -> Framework:
    """Wrap an extraction result as a framework at the ``collected`` checkpoint."""
    result.finish()
    return Framework(
        format_version="1.0",
        checkpoint="collected",
        name=name,
        sdk_version=sdk_version,
        collected_at=datetime.now(timezone.utc).isoformat(),
        skipped_symbols=list(result.skipped_symbols),
        classes=list(result.classes),
        protocols=list(result.protocols),
        enums=list(result.enums),
        structs=list(result.structs),
        functions=list(result.functions),
        constants=list(result.constants),
    )