# sdkmeta

`sdkmeta` works with API metadata for the frameworks of a macOS SDK. It
defines a JSON checkpoint format for framework declarations. It holds the
rules for assembling collected declarations into that format. It also
resolves inheritance across frameworks and writes the resolved checkpoints
that code generators can read.

## Modules

- `sdkmeta.model` defines the checkpoint format. Its classes are `Framework`,
  `Class`, `Method`, `Property`, `Protocol`, `Enum`, `Struct`, `Function`,
  `Constant` and `TypeRef`, along with the helper records around them.
  - `Framework.to_json()` writes pretty-printed JSON, and
    `Framework.from_json()` reads it back. The framework name is stored
    under the key `"framework"`.
  - `well_known_typedef(name)` gives the fixed mapping for ObjC typedefs.
    For example, `NSInteger` maps to the primitive `int64`, and `BOOL` maps
    to `bool`.
  - `primitive_name(kind)` maps clang builtin kind names such as `"Int"` to
    IR primitive names such as `"int32"`.
- `sdkmeta.sdk` finds the SDK and its frameworks.
  - `discover_sdk()` runs `xcrun --show-sdk-path` and
    `xcrun --show-sdk-version`, and returns an `SdkInfo`.
  - `discover_frameworks(sdk_path)` lists every
    `System/Library/Frameworks/*.framework` that has an umbrella header
    `Headers/<Name>.h`. It returns `FrameworkInfo` records sorted by name.
- `sdkmeta.objc` holds the rules for assembling collected declarations.
  - `ExtractionResult` removes duplicates by name and drops internal
    functions and constants. Its `finish()` method merges category methods
    and properties into their classes and sorts every list by name.
  - The helper functions are `is_init_selector`, `is_skipped_function`,
    `is_skipped_constant`, `is_framework_header`, `relative_header`,
    `format_version`, `apple_doc_url` and `clang_arguments`.
  - `new_collected_framework(name, sdk_version, result)` wraps a result as a
    `Framework` at the `"collected"` checkpoint, stamped with the current
    UTC time.
- `sdkmeta.program` provides `ResolutionProgram` and `returns_retained`.
  - `ResolutionProgram` holds the base facts as lists of tuples. Its `run()`
    method computes the derived relations to a fixed point:
    - `ancestor`: the transitive closure of superclasses.
    - `effective_method`: methods flattened through inheritance. Overrides
      are keyed by selector and by whether the method is a class method or
      an instance method.
    - `effective_property`: properties flattened through inheritance.
    - `returns_retained_method`: methods in the `alloc`, `copy`,
      `mutableCopy` and `new` families, and instance methods in the `init`
      family.
    - `satisfies_protocol_method`: methods that match a method of a
      protocol the class conforms to.
- `sdkmeta.facts.load_framework_facts(prog, framework)` adds a framework's
  declarations to a program as base facts.
- `sdkmeta.checkpoint` maps the program's results back onto the IR.
  - `build_resolved_framework(collected, prog)` returns a copy of the
    framework at the `"resolved"` checkpoint. In the copy, each class has
    `ancestors`, `all_methods` and `all_properties` filled in. Each of its
    methods carries `origin`, `returns_retained` and `satisfies_protocol`.
  - `write_resolved_checkpoint(framework, output_dir)` writes the framework
    to `<output_dir>/<name>.json`.
- `sdkmeta.resolve` handles loading and resolution together.
  - `load_framework(path)` and `load_all_frameworks(input_dir, only)` read
    checkpoints.
  - `resolve_loaded_frameworks(frameworks)` resolves frameworks that are
    already loaded.
  - `resolve_frameworks(input_dir, output_dir, only)` does all of it:
    load, resolve and write.

## Usage

Resolve a directory of collected checkpoints and write the resolved ones:

```python
from pathlib import Path

from sdkmeta.resolve import resolve_frameworks

resolved = resolve_frameworks(
    Path("collection/ir/collected"),
    Path("analysis/ir/resolved"),
    ["Foundation", "AppKit"],   # file stems to load, or None for every *.json
)
for framework in resolved:
    print(framework.name, len(framework.classes))
```

All frameworks are loaded into one program. Inheritance that crosses
frameworks is therefore resolved: AppKit classes, for example, inherit
methods declared in Foundation.

Work with frameworks that are already in memory:

```python
from sdkmeta.resolve import load_framework, resolve_loaded_frameworks

foundation = load_framework(Path("collection/ir/collected/Foundation.json"))
(resolved,) = resolve_loaded_frameworks([foundation])

nsstring = next(c for c in resolved.classes if c.name == "NSString")
init = next(m for m in nsstring.all_methods if m.selector == "init" and not m.class_method)
assert init.returns_retained is True
```

Drive the program directly:

```python
from sdkmeta.facts import load_framework_facts
from sdkmeta.program import ResolutionProgram, returns_retained
from sdkmeta.checkpoint import build_resolved_framework, write_resolved_checkpoint

prog = ResolutionProgram()
load_framework_facts(prog, foundation)
prog.run()

resolved = build_resolved_framework(foundation, prog)
write_resolved_checkpoint(resolved, Path("out"))

returns_retained("copyWithZone:", False)   # True
returns_retained("compare:", False)        # False
```

Discover the SDK on a Mac that has Xcode or the Command Line Tools installed:

```python
from sdkmeta.sdk import discover_sdk, discover_frameworks

sdk = discover_sdk()
names = [info.name for info in discover_frameworks(sdk.path)]
```

## Errors

- `sdkmeta.sdk.SdkError` is raised in these cases:
  - `xcrun` cannot be run.
  - `xcrun` exits with a failure.
  - `xcrun` prints output that is not UTF-8.
  - The frameworks directory is missing.
- `sdkmeta.resolve.ResolutionError` is raised in these cases:
  - The input directory is missing.
  - No frameworks are found.
  - A checkpoint cannot be read or parsed.
  - The output directory cannot be created.
  - A resolved checkpoint cannot be written.
- Decoding a malformed checkpoint with `Framework.from_dict` or
  `Framework.from_json` raises `ValueError`.

## What it does not do

`sdkmeta` does not parse header files. It has no header parser, so it cannot
walk headers and produce `Framework` values from them by itself.
`sdkmeta.objc` supplies the rules and the arguments for such a parser, and
the records it fills in, but not the parser.

There is no command-line program. Use the functions above from Python.

## Requirements

`sdkmeta` needs Python 3.10 or later and has no third-party dependencies.
SDK discovery needs macOS with `xcrun`. The checkpoint format and resolution
work on any platform.