"""Discovery of the active macOS SDK and its frameworks."""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


class SdkError(RuntimeError):
    """Raised when the SDK or its frameworks cannot be discovered."""


@dataclass(frozen=True)
class SdkInfo:
    """The active macOS SDK: its root path and version string."""

    path: Path
    version: str


@dataclass(frozen=True)
class FrameworkInfo:
    """A framework directory with an umbrella header."""

    name: str
    umbrella_header: Path
    framework_dir: Path


def _xcrun(flag: str) -> str:
    command = ["xcrun", flag]
    try:
        completed = subprocess.run(command, capture_output=True, check=False)
    except OSError as exc:
        raise SdkError(f"failed to execute xcrun {flag}: {exc}") from exc
    if completed.returncode != 0:
        stderr = completed.stderr.decode("utf-8", errors="replace")
        raise SdkError(f"xcrun {flag} failed: {stderr}")
    try:
        return completed.stdout.decode("utf-8").strip()
    except UnicodeDecodeError as exc:
        raise SdkError("xcrun output is not valid UTF-8") from exc


def discover_sdk() -> SdkInfo:
    """Locate the active macOS SDK via ``xcrun``."""
    path = Path(_xcrun("--show-sdk-path"))
    version = _xcrun("--show-sdk-version")
    return SdkInfo(path=path, version=version)


def discover_frameworks(sdk_path: str | os.PathLike[str]) -> list[FrameworkInfo]:
    """List frameworks under ``System/Library/Frameworks`` that have an umbrella header.

    The result is sorted by framework name.
    """
    frameworks_dir = Path(sdk_path) / "System" / "Library" / "Frameworks"
    if not frameworks_dir.exists():
        raise SdkError(f"frameworks directory not found: {frameworks_dir}")

    try:
        entries = list(frameworks_dir.iterdir())
    except OSError as exc:
        raise SdkError(f"failed to read {frameworks_dir}: {exc}") from exc

    frameworks = []
    for entry in entries:
        if not entry.is_dir() or entry.suffix != ".framework":
            continue
        name = entry.name[: -len(".framework")]
        if not name:
            continue
        umbrella = entry / "Headers" / f"{name}.h"
        if not umbrella.exists():
            logger.debug("skipping framework %s: no umbrella header", name)
            continue
        frameworks.append(FrameworkInfo(name=name, umbrella_header=umbrella, framework_dir=entry))

    frameworks.sort(key=lambda f: f.name)
    return frameworks