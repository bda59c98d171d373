"""Packaging rules and run modes that a build configuration resolves to."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Union

__all__ = [
    "RawAllocator",
    "InstallLocation",
    "PackagingSetupPyInstall",
    "PackagingStdlibExtensionsPolicy",
    "PackagingStdlibExtensionsExplicitIncludes",
    "PackagingStdlibExtensionsExplicitExcludes",
    "PackagingStdlibExtensionVariant",
    "PackagingStdlib",
    "PackagingVirtualenv",
    "PackagingPackageRoot",
    "PackagingPipInstallSimple",
    "PackagingPipRequirementsFile",
    "PackagingFilterInclude",
    "PackagingWriteLicenseFiles",
    "PackagingRule",
    "RunNoop",
    "RunRepl",
    "RunModule",
    "RunEval",
    "RunMode",
    "resolve_install_location",
]

_APP_RELATIVE_PREFIX = "app-relative:"


class RawAllocator(enum.Enum):
    """Memory allocator the embedded interpreter uses."""

    JEMALLOC = "jemalloc"
    RUST = "rust"
    SYSTEM = "system"


@dataclass(frozen=True)
class InstallLocation:
    """Where resources are installed: embedded when ``path`` is None, else app-relative."""

    path: str | None = None

    @property
    def embedded(self) -> bool:
        return self.path is None


def resolve_install_location(value: str) -> InstallLocation:
    """Parse an ``install_location`` value such as ``embedded`` or ``app-relative:lib``."""
    if value == "embedded":
        return InstallLocation()
    if value.startswith(_APP_RELATIVE_PREFIX):
        return InstallLocation(value[len(_APP_RELATIVE_PREFIX):])
    raise ValueError(f"invalid install_location: {value}")


@dataclass
class PackagingSetupPyInstall:
    path: str
    optimize_level: int = 0
    include_source: bool = True
    install_location: InstallLocation = field(default_factory=InstallLocation)


@dataclass
class PackagingStdlibExtensionsPolicy:
    policy: str


@dataclass
class PackagingStdlibExtensionsExplicitIncludes:
    includes: list[str] = field(default_factory=list)


@dataclass
class PackagingStdlibExtensionsExplicitExcludes:
    excludes: list[str] = field(default_factory=list)


@dataclass
class PackagingStdlibExtensionVariant:
    extension: str
    variant: str


@dataclass
class PackagingStdlib:
    optimize_level: int = 0
    exclude_test_modules: bool = True
    include_source: bool = True
    include_resources: bool = False
    install_location: InstallLocation = field(default_factory=InstallLocation)


@dataclass
class PackagingVirtualenv:
    path: str
    optimize_level: int = 0
    excludes: list[str] = field(default_factory=list)
    include_source: bool = True
    install_location: InstallLocation = field(default_factory=InstallLocation)


@dataclass
class PackagingPackageRoot:
    path: str
    packages: list[str]
    optimize_level: int = 0
    excludes: list[str] = field(default_factory=list)
    include_source: bool = True
    install_location: InstallLocation = field(default_factory=InstallLocation)


@dataclass
class PackagingPipInstallSimple:
    package: str
    optimize_level: int = 0
    excludes: list[str] = field(default_factory=list)
    include_source: bool = True
    install_location: InstallLocation = field(default_factory=InstallLocation)


@dataclass
class PackagingPipRequirementsFile:
    requirements_path: str
    optimize_level: int = 0
    include_source: bool = True
    install_location: InstallLocation = field(default_factory=InstallLocation)


@dataclass
class PackagingFilterInclude:
    files: list[str]
    glob_files: list[str]


@dataclass
class PackagingWriteLicenseFiles:
    path: str


PackagingRule = Union[
    PackagingSetupPyInstall,
    PackagingStdlibExtensionsPolicy,
    PackagingStdlibExtensionsExplicitIncludes,
    PackagingStdlibExtensionsExplicitExcludes,
    PackagingStdlibExtensionVariant,
    PackagingStdlib,
    PackagingVirtualenv,
    PackagingPackageRoot,
    PackagingPipInstallSimple,
    PackagingPipRequirementsFile,
    PackagingFilterInclude,
    PackagingWriteLicenseFiles,
]


@dataclass(frozen=True)
class RunNoop:
    """Start the interpreter and do nothing."""


@dataclass(frozen=True)
class RunRepl:
    """Start an interactive interpreter."""


@dataclass(frozen=True)
class RunModule:
    """Run a module as ``__main__``."""

    module: str


@dataclass(frozen=True)
class RunEval:
    """Evaluate a piece of code."""

    code: str


RunMode = Union[RunNoop, RunRepl, RunModule, RunEval]