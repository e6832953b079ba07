"""Building and writing resolved framework checkpoints.

Maps the results of a :class:`ResolutionProgram` back onto the framework IR,
filling in ``ancestors``, ``all_methods`` and ``all_properties`` of every
class, and ``returns_retained`` and ``satisfies_protocol`` of every
effective method.
"""

from __future__ import annotations

import copy
import logging
import os
from collections import defaultdict
from pathlib import Path
from typing import Mapping, Union

from sdkmeta.model import Framework, Method, Property, TypeRef
from sdkmeta.program import ResolutionProgram

logger = logging.getLogger(__name__)

_MethodKey = tuple[str, str, bool]
_PropertyKey = tuple[str, str]


def write_resolved_checkpoint(
    framework: Framework, output_dir: Union[str, "os.PathLike[str]"]
) -> Path:
    """Write ``framework`` as pretty JSON to ``{output_dir}/{name}.json`` and return the path."""
    path = Path(output_dir) / f"{framework.name}.json"
    path.write_text(framework.to_json(), encoding="utf-8")
    logger.info("wrote resolved checkpoint for %s to %s", framework.name, path)
    return path


def build_resolved_framework(collected: Framework, prog: ResolutionProgram) -> Framework:
    """Return a copy of ``collected`` at the ``resolved`` checkpoint.

    The collected framework itself is left unchanged. ``prog`` must already
    have been run.
    """
    method_index: dict[_MethodKey, Method] = {
        (cls.name, method.selector, method.class_method): method
        for cls in collected.classes
        for method in cls.methods
    }
    property_index: dict[_PropertyKey, Property] = {
        (cls.name, prop.name): prop for cls in collected.classes for prop in cls.properties
    }
    retained: set[_MethodKey] = set(prog.returns_retained_method)

    satisfaction: dict[_MethodKey, str] = {}
    for cls_name, selector, is_cm, proto in prog.satisfies_protocol_method:
        satisfaction.setdefault((cls_name, selector, is_cm), proto)

    ancestors: dict[str, list[str]] = defaultdict(list)
    for child, anc in prog.ancestor:
        ancestors[child].append(anc)

    methods_by_class: dict[str, list[tuple]] = defaultdict(list)
    for row in prog.effective_method:
        methods_by_class[row[0]].append(row)

    properties_by_class: dict[str, list[tuple]] = defaultdict(list)
    for row in prog.effective_property:
        properties_by_class[row[0]].append(row)

    resolved = copy.deepcopy(collected)
    resolved.checkpoint = "resolved"

    for cls in resolved.classes:
        cls.ancestors = sorted(ancestors.get(cls.name, ()))
        cls.all_methods = sorted(
            (
                _effective_method(row, method_index, retained, satisfaction)
                for row in methods_by_class.get(cls.name, ())
            ),
            key=lambda m: (m.selector, m.class_method),
        )
        cls.all_properties = sorted(
            (_effective_property(row, property_index) for row in properties_by_class.get(cls.name, ())),
            key=lambda p: p.name,
        )

    return resolved


def _effective_method(
    row: tuple,
    method_index: Mapping[_MethodKey, Method],
    retained: set[_MethodKey],
    satisfaction: Mapping[_MethodKey, str],
) -> Method:
    cls_name, selector, is_cm, is_init, is_dep, is_var, origin = row
    key = (cls_name, selector, is_cm)
    original = method_index.get((origin, selector, is_cm))
    if original is not None:
        method = copy.deepcopy(original)
        if origin != cls_name:
            method.origin = origin
    else:
        # Declared in a framework other than the one being resolved.
        method = Method(
            selector=selector,
            class_method=is_cm,
            init_method=is_init,
            params=[],
            return_type=TypeRef.void(),
            deprecated=is_dep,
            variadic=is_var,
            origin=origin,
        )
    method.returns_retained = key in retained
    proto = satisfaction.get(key)
    if proto is not None:
        method.satisfies_protocol = proto
    return method


def _effective_property(row: tuple, property_index: Mapping[_PropertyKey, Property]) -> Property:
    cls_name, name, readonly, class_property, deprecated, origin = row
    original = property_index.get((origin, name))
    if original is not None:
        prop = copy.deepcopy(original)
        if origin != cls_name:
            prop.origin = origin
        return prop
    return Property(
        name=name,
        property_type=TypeRef.void(),
        readonly=readonly,
        class_property=class_property,
        deprecated=deprecated,
        origin=origin,
    )