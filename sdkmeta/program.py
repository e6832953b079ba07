"""Inheritance resolution over collected declarations.

Base relations are plain lists of tuples filled from the collected IR; :meth:`ResolutionProgram.run`
computes the derived relations to a fixed point:

- ``ancestor``: transitive inheritance
- ``effective_method``: inheritance-flattened methods with override detection
- ``effective_property``: inheritance-flattened properties with override detection
- ``returns_retained_method``: Cocoa ownership family detection
- ``satisfies_protocol_method``: protocol conformance matching
"""

from __future__ import annotations

from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Callable, Hashable, Iterable, TypeVar

_OWNERSHIP_FAMILIES = ("alloc", "copy", "mutableCopy", "new")

_Item = TypeVar("_Item", bound=Hashable)


def _in_family(selector: str, family: str) -> bool:
    # A selector belongs to a family when its first camel-case word is the family name;
    # leading underscores are ignored.
    name = selector.lstrip("_")
    if not name.startswith(family):
        return False
    rest = name[len(family):]
    return not rest or not rest[0].islower()


def returns_retained(selector: str, class_method: bool) -> bool:
    """True when a method of this selector returns an object the caller owns.

    ``alloc``, ``copy``, ``mutableCopy`` and ``new`` families always do; the
    ``init`` family does for instance methods.
    """
    if any(_in_family(selector, family) for family in _OWNERSHIP_FAMILIES):
        return True
    return not class_method and _in_family(selector, "init")


def _inherit(
    edges: Iterable[tuple[str, str]],
    facts: dict[str, set[_Item]],
    blocked: Callable[[str, _Item], bool],
) -> dict[str, set[_Item]]:
    """Propagate per-class items from parents to children until nothing changes."""
    children: dict[str, list[str]] = defaultdict(list)
    for child, parent in edges:
        children[parent].append(child)

    result: dict[str, set[_Item]] = defaultdict(set)
    for name, items in facts.items():
        result[name].update(items)

    queue = deque(list(result))
    while queue:
        parent = queue.popleft()
        inherited = list(result.get(parent, ()))
        if not inherited:
            continue
        for child in children.get(parent, ()):
            target = result[child]
            before = len(target)
            target.update(item for item in inherited if not blocked(child, item))
            if len(target) != before:
                queue.append(child)
    return result


@dataclass
class ResolutionProgram:
    """Base facts and the relations derived from them."""

    # Base facts
    class_decl: list[tuple[str, str, str]] = field(default_factory=list)
    inherits_from: list[tuple[str, str]] = field(default_factory=list)
    conforms_to: list[tuple[str, str]] = field(default_factory=list)
    method_decl: list[tuple[str, str, bool, bool, bool, bool]] = field(default_factory=list)
    property_decl: list[tuple[str, str, bool, bool, bool]] = field(default_factory=list)
    protocol_decl: list[tuple[str]] = field(default_factory=list)
    protocol_inherits: list[tuple[str, str]] = field(default_factory=list)
    protocol_method: list[tuple[str, str, bool, bool]] = field(default_factory=list)
    protocol_property: list[tuple[str, str, bool]] = field(default_factory=list)
    enum_decl: list[tuple[str]] = field(default_factory=list)
    enum_value_decl: list[tuple[str, str, int]] = field(default_factory=list)
    struct_decl: list[tuple[str]] = field(default_factory=list)
    struct_field_decl: list[tuple[str, str, int]] = field(default_factory=list)
    function_decl: list[tuple[str]] = field(default_factory=list)
    constant_decl: list[tuple[str]] = field(default_factory=list)

    # Derived relations
    ancestor: list[tuple[str, str]] = field(default_factory=list)
    effective_method: list[tuple[str, str, bool, bool, bool, bool, str]] = field(
        default_factory=list
    )
    effective_property: list[tuple[str, str, bool, bool, bool, str]] = field(
        default_factory=list
    )
    returns_retained_method: list[tuple[str, str, bool]] = field(default_factory=list)
    satisfies_protocol_method: list[tuple[str, str, bool, str]] = field(default_factory=list)

    def run(self) -> None:
        """Compute every derived relation from the current base facts.

        Derived relations are recomputed from scratch and sorted, so running
        again gives the same result.
        """
        self._resolve_ancestors()
        self._resolve_methods()
        self._resolve_properties()
        self._resolve_ownership()
        self._resolve_protocols()

    def _resolve_ancestors(self) -> None:
        direct: dict[str, set[str]] = defaultdict(set)
        for child, parent in self.inherits_from:
            direct[child].add(parent)
        closure = _inherit(self.inherits_from, direct, lambda _child, _item: False)
        self.ancestor = sorted(
            (child, anc) for child, ancestors in closure.items() for anc in ancestors
        )

    def _resolve_methods(self) -> None:
        own_keys: dict[str, set[tuple[str, bool]]] = defaultdict(set)
        own: dict[str, set[tuple[str, bool, bool, bool, bool, str]]] = defaultdict(set)
        for cls, sel, is_cm, is_init, is_dep, is_var in self.method_decl:
            own_keys[cls].add((sel, is_cm))
            own[cls].add((sel, is_cm, is_init, is_dep, is_var, cls))

        # Instance and class methods live in separate namespaces.
        flattened = _inherit(
            self.inherits_from,
            own,
            lambda child, item: (item[0], item[1]) in own_keys.get(child, ()),
        )
        self.effective_method = sorted(
            (cls, *item) for cls, items in flattened.items() for item in items
        )

    def _resolve_properties(self) -> None:
        own_names: dict[str, set[str]] = defaultdict(set)
        own: dict[str, set[tuple[str, bool, bool, bool, str]]] = defaultdict(set)
        for cls, name, readonly, class_prop, deprecated in self.property_decl:
            own_names[cls].add(name)
            own[cls].add((name, readonly, class_prop, deprecated, cls))

        flattened = _inherit(
            self.inherits_from,
            own,
            lambda child, item: item[0] in own_names.get(child, ()),
        )
        self.effective_property = sorted(
            (cls, *item) for cls, items in flattened.items() for item in items
        )

    def _resolve_ownership(self) -> None:
        self.returns_retained_method = sorted(
            {
                (cls, sel, is_cm)
                for cls, sel, is_cm, *_rest in self.effective_method
                if returns_retained(sel, is_cm)
            }
        )

    def _resolve_protocols(self) -> None:
        conformances: dict[str, set[str]] = defaultdict(set)
        for cls, proto in self.conforms_to:
            conformances[cls].add(proto)
        protocol_selectors: set[tuple[str, str, bool]] = {
            (proto, sel, is_cm) for proto, sel, _required, is_cm in self.protocol_method
        }
        self.satisfies_protocol_method = sorted(
            {
                (cls, sel, is_cm, proto)
                for cls, sel, is_cm, *_rest in self.effective_method
                for proto in conformances.get(cls, ())
                if (proto, sel, is_cm) in protocol_selectors
            }
        )