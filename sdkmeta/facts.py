"""Loading collected frameworks into a resolution program's base relations."""

from __future__ import annotations

from sdkmeta.model import Framework
from sdkmeta.program import ResolutionProgram


def load_framework_facts(prog: ResolutionProgram, framework: Framework) -> None:
    """Append base facts for every declaration in ``framework`` to ``prog``.

    May be called for several frameworks before :meth:`ResolutionProgram.run`
    so that inheritance across frameworks is resolved.
    """
    framework_name = framework.name

    for cls in framework.classes:
        prog.class_decl.append((cls.name, cls.superclass, framework_name))
        if cls.superclass:
            prog.inherits_from.append((cls.name, cls.superclass))
        prog.conforms_to.extend((cls.name, protocol) for protocol in cls.protocols)
        prog.method_decl.extend(
            (
                cls.name,
                method.selector,
                method.class_method,
                method.init_method,
                method.deprecated,
                method.variadic,
            )
            for method in cls.methods
        )
        prog.property_decl.extend(
            (cls.name, prop.name, prop.readonly, prop.class_property, prop.deprecated)
            for prop in cls.properties
        )

    for proto in framework.protocols:
        prog.protocol_decl.append((proto.name,))
        prog.protocol_inherits.extend((proto.name, parent) for parent in proto.inherits)
        prog.protocol_method.extend(
            (proto.name, method.selector, True, method.class_method)
            for method in proto.required_methods
        )
        prog.protocol_method.extend(
            (proto.name, method.selector, False, method.class_method)
            for method in proto.optional_methods
        )
        prog.protocol_property.extend((proto.name, prop.name, True) for prop in proto.properties)

    for enumeration in framework.enums:
        prog.enum_decl.append((enumeration.name,))
        prog.enum_value_decl.extend(
            (enumeration.name, value.name, value.value) for value in enumeration.values
        )

    for structure in framework.structs:
        prog.struct_decl.append((structure.name,))
        prog.struct_field_decl.extend(
            (structure.name, fld.name, index) for index, fld in enumerate(structure.fields)
        )

    prog.function_decl.extend((function.name,) for function in framework.functions)
    prog.constant_decl.extend((constant.name,) for constant in framework.constants)