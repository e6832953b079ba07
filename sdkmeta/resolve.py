"""Resolution of collected frameworks into resolved checkpoints.

All frameworks are loaded into one resolution program so that inheritance
across frameworks is resolved, then each is written out at the ``resolved``
checkpoint.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from sdkmeta.checkpoint import build_resolved_framework, write_resolved_checkpoint
from sdkmeta.facts import load_framework_facts
from sdkmeta.model import Framework
from sdkmeta.program import ResolutionProgram

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


class ResolutionError(RuntimeError):
    """Raised when frameworks cannot be loaded or resolved checkpoints written."""


def load_framework(path: PathLike) -> Framework:
    """Read one framework checkpoint from a JSON file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ResolutionError(f"failed to read {path}: {exc}") from exc
    try:
        return Framework.from_json(text)
    except (ValueError, TypeError) as exc:
        raise ResolutionError(f"failed to parse {path}: {exc}") from exc


def load_all_frameworks(
    input_dir: PathLike, only: Optional[Iterable[str]] = None
) -> list[Framework]:
    """Load every ``*.json`` checkpoint in ``input_dir``, in file-name order.

    When ``only`` is given, just the frameworks whose file is named after
    one of its entries are loaded.
    """
    directory = Path(input_dir)
    if not directory.is_dir():
        raise ResolutionError(f"input directory not found: {directory}")
    wanted = set(only) if only is not None else None
    paths = sorted(
        (p for p in directory.glob("*.json") if p.is_file()),
        key=lambda p: p.name,
    )
    return [load_framework(p) for p in paths if wanted is None or p.stem in wanted]


def resolve_loaded_frameworks(frameworks: Sequence[Framework]) -> list[Framework]:
    """Resolve already-loaded frameworks together and return their resolved copies."""
    prog = ResolutionProgram()
    for framework in frameworks:
        load_framework_facts(prog, framework)

    logger.info("running resolution")
    prog.run()
    logger.info(
        "resolution complete: %d ancestors, %d effective methods, %d effective properties, "
        "%d returns retained, %d satisfies protocol",
        len(prog.ancestor),
        len(prog.effective_method),
        len(prog.effective_property),
        len(prog.returns_retained_method),
        len(prog.satisfies_protocol_method),
    )
    return [build_resolved_framework(framework, prog) for framework in frameworks]


def resolve_frameworks(
    input_dir: PathLike, output_dir: PathLike, only: Optional[Iterable[str]] = None
) -> list[Framework]:
    """Load collected checkpoints, resolve them, and write resolved checkpoints."""
    frameworks = load_all_frameworks(input_dir, only)
    if not frameworks:
        raise ResolutionError(f"no frameworks found in {input_dir}")
    logger.info("loaded %d frameworks for resolution", len(frameworks))

    resolved = resolve_loaded_frameworks(frameworks)

    out = Path(output_dir)
    try:
        out.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ResolutionError(f"failed to create output directory: {out}: {exc}") from exc

    for framework in resolved:
        try:
            write_resolved_checkpoint(framework, out)
        except OSError as exc:
            raise ResolutionError(f"failed to write {framework.name}: {exc}") from exc
    return resolved