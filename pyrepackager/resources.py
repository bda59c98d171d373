"""Resources collected for packaging and the packed formats they are written in."""

from __future__ import annotations

import os
import struct
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

__all__ = [
    "LibraryDepends",
    "ExtensionModule",
    "LicenseInfo",
    "DistributionInfo",
    "ModuleEntry",
    "EmbeddedPythonResources",
    "AppRelativeResources",
    "PythonResources",
    "STDLIB_TEST_PACKAGES",
    "is_stdlib_test_package",
    "packages_from_module_names",
    "read_resource_names_file",
    "write_modules_entries",
    "write_resources_entries",
]

STDLIB_TEST_PACKAGES: tuple[str, ...] = (
    "bsddb.test",
    "ctypes.test",
    "distutils.tests",
    "email.test",
    "idlelib.idle_test",
    "json.tests",
    "lib-tk.test",
    "lib2to3.tests",
    "sqlite3.test",
    "test",
    "tkinter.test",
    "unittest.test",
)

_U32 = struct.Struct("<I")


@dataclass
class LibraryDepends:
    """A library an extension module or the interpreter core links against."""

    name: str
    static_path: Path | None = None
    dynamic_path: Path | None = None
    framework: bool = False
    system: bool = False


@dataclass
class ExtensionModule:
    """One variant of an extension module shipped with a Python distribution."""

    module: str
    init_fn: str | None = None
    builtin_default: bool = False
    disableable: bool = True
    object_paths: list[Path] = field(default_factory=list)
    static_library: Path | None = None
    links: list[LibraryDepends] = field(default_factory=list)
    required: bool = False
    variant: str = "default"
    licenses: list[str] | None = None
    license_paths: list[Path] | None = None
    license_public_domain: bool | None = None


@dataclass
class LicenseInfo:
    """License names, a suggested file name and the text of a license."""

    licenses: list[str]
    license_filename: str
    license_text: str


@dataclass
class DistributionInfo:
    """What is known about an extracted Python distribution."""

    base_dir: Path
    flavor: str
    version: str
    os: str
    arch: str
    python_exe: Path
    stdlib_path: Path | None = None
    licenses: list[str] | None = None
    license_path: Path | None = None
    objs_core: dict[Path, Path] = field(default_factory=dict)
    links_core: list[LibraryDepends] = field(default_factory=list)
    extension_modules: dict[str, list[ExtensionModule]] = field(default_factory=dict)
    includes: dict[str, Path] = field(default_factory=dict)
    libraries: dict[str, Path] = field(default_factory=dict)
    py_modules: dict[str, Path] = field(default_factory=dict)
    resources: dict[str, dict[str, Path]] = field(default_factory=dict)
    license_infos: dict[str, list[LicenseInfo]] = field(default_factory=dict)


@dataclass(frozen=True)
class ModuleEntry:
    """A module's name with its source and bytecode, either of which may be absent."""

    name: str
    source: bytes | None = None
    bytecode: bytes | None = None


def is_stdlib_test_package(name: str) -> bool:
    """Whether ``name`` is one of the standard library's test packages or inside one."""
    return any(
        name == package or name.startswith(package + ".")
        for package in STDLIB_TEST_PACKAGES
    )


def packages_from_module_names(names: Iterable[str]) -> set[str]:
    """Every parent package implied by the dotted module ``names``."""
    packages: set[str] = set()
    for name in names:
        parts = name.split(".")
        for end in range(1, len(parts)):
            packages.add(".".join(parts[:end]))
    return packages


def read_resource_names_file(path: str | os.PathLike[str]) -> set[str]:
    """Read resource names, one per line, skipping blank lines and ``#`` comments."""
    text = Path(path).read_text(encoding="utf-8")
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    names: set[str] = set()
    for line in lines:
        line = line.removesuffix("\r")
        if not line or line.startswith("#"):
            continue
        names.add(line)
    return names


def write_modules_entries(dest: BinaryIO, entries: Iterable[ModuleEntry]) -> None:
    """Write module entries in the packed modules format.

    The count comes first, then name, source and bytecode lengths for every
    entry, then all names, all sources and finally all bytecode.
    """
    entries = list(entries)
    dest.write(_U32.pack(len(entries)))
    for entry in entries:
        dest.write(_U32.pack(len(entry.name.encode("utf-8"))))
        dest.write(_U32.pack(len(entry.source) if entry.source is not None else 0))
        dest.write(_U32.pack(len(entry.bytecode) if entry.bytecode is not None else 0))
    for entry in entries:
        dest.write(entry.name.encode("utf-8"))
    for entry in entries:
        if entry.source is not None:
            dest.write(entry.source)
    for entry in entries:
        if entry.bytecode is not None:
            dest.write(entry.bytecode)


def write_resources_entries(
    dest: BinaryIO, entries: Mapping[str, Mapping[str, bytes]]
) -> None:
    """Write package resources in the packed resources format.

    Packages and resource names are written in sorted order: all lengths
    first, then all names, then all resource data.
    """
    packages = [
        (package, sorted(entries[package].items())) for package in sorted(entries)
    ]
    dest.write(_U32.pack(len(packages)))
    for package, resources in packages:
        dest.write(_U32.pack(len(package.encode("utf-8"))))
        dest.write(_U32.pack(len(resources)))
        for name, value in resources:
            dest.write(_U32.pack(len(name.encode("utf-8"))))
            dest.write(_U32.pack(len(value)))
    for package, resources in packages:
        dest.write(package.encode("utf-8"))
        for name, _ in resources:
            dest.write(name.encode("utf-8"))
    for _, resources in packages:
        for _, value in resources:
            dest.write(value)


@dataclass
class EmbeddedPythonResources:
    """Modules, resources and extension modules to embed in a binary."""

    module_sources: dict[str, bytes] = field(default_factory=dict)
    module_bytecodes: dict[str, bytes] = field(default_factory=dict)
    all_modules: set[str] = field(default_factory=set)
    resources: dict[str, dict[str, bytes]] = field(default_factory=dict)
    extension_modules: dict[str, ExtensionModule] = field(default_factory=dict)

    def modules_records(self) -> list[ModuleEntry]:
        """A record for every module, sorted by name."""
        return [
            ModuleEntry(
                name=name,
                source=self.module_sources.get(name),
                bytecode=self.module_bytecodes.get(name),
            )
            for name in sorted(self.all_modules)
        ]

    def write_blobs(
        self,
        module_names_path: str | os.PathLike[str],
        modules_path: str | os.PathLike[str],
        resources_path: str | os.PathLike[str],
    ) -> None:
        """Write the module name list, the packed modules and the packed resources."""
        with open(module_names_path, "wb") as fh:
            for name in sorted(self.all_modules):
                fh.write(name.encode("utf-8") + b"\n")
        with open(modules_path, "wb") as fh:
            write_modules_entries(fh, self.modules_records())
        with open(resources_path, "wb") as fh:
            write_resources_entries(fh, self.resources)


@dataclass
class AppRelativeResources:
    """Modules and resources to install in a directory next to the binary."""

    module_sources: dict[str, bytes] = field(default_factory=dict)
    module_bytecodes: dict[str, bytes] = field(default_factory=dict)
    resources: dict[str, dict[str, bytes]] = field(default_factory=dict)

    def package_names(self) -> set[str]:
        """Packages implied by the names of the source and bytecode modules."""
        return packages_from_module_names(self.module_sources) | packages_from_module_names(
            self.module_bytecodes
        )


@dataclass
class PythonResources:
    """Everything resolved for packaging an application."""

    embedded: EmbeddedPythonResources = field(default_factory=EmbeddedPythonResources)
    app_relative: dict[str, AppRelativeResources] = field(default_factory=dict)
    read_files: list[Path] = field(default_factory=list)
    license_files_path: str | None = None