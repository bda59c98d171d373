"""Discovery of Python modules, bytecode and resource files in directory trees."""

from __future__ import annotations

import enum
import os
from collections.abc import Iterator
from dataclasses import dataclass, replace
from pathlib import Path

__all__ = [
    "PythonResourceType",
    "PythonResource",
    "walk_tree_files",
    "find_python_resources",
    "find_python_modules",
]


class PythonResourceType(enum.Enum):
    """The kind of a file found in a Python directory tree."""

    SOURCE = "source"
    BYTECODE = "bytecode"
    BYTECODE_OPT1 = "bytecode-opt1"
    BYTECODE_OPT2 = "bytecode-opt2"
    RESOURCE = "resource"
    OTHER = "other"


@dataclass(frozen=True)
class PythonResource:
    """A source, bytecode or resource file addressable by a dotted name.

    ``package`` is the package the file belongs to. ``stem`` is the final
    name component (empty for files defining a package). ``full_name`` is
    the dotted name as importlib would refer to it.
    """

    package: str
    stem: str
    full_name: str
    path: Path
    flavor: PythonResourceType


def _walk(path: Path) -> Iterator[Path]:
    if not path.is_dir():
        yield path
        return
    with os.scandir(path) as it:
        entries = sorted(it, key=lambda e: e.name)
    for entry in entries:
        entry_path = Path(entry.path)
        if entry.is_dir(follow_symlinks=False):
            yield from _walk(entry_path)
        elif not entry_path.is_dir():
            yield entry_path


def walk_tree_files(path: str | os.PathLike[str]) -> Iterator[Path]:
    """Yield every non-directory path below ``path``, depth first, sorted by name."""
    root = Path(path)
    if not root.exists():
        raise FileNotFoundError(f"unable to walk {root}: no such file or directory")
    yield from _walk(root)


def _module_resource(
    package_parts: list[str], module_name: str, path: Path, flavor: PythonResourceType
) -> PythonResource:
    full_parts = list(package_parts)
    if module_name == "__init__":
        stem = ""
    else:
        full_parts.append(module_name)
        stem = module_name
    full_name = ".".join(full_parts)
    package = ".".join(package_parts) or full_name
    return PythonResource(package, stem, full_name, path, flavor)


def _classify(path: Path, root: Path, seen_packages: set[str]) -> PythonResource | None:
    rel_path = path.relative_to(root)
    rel_str = str(rel_path)
    components = list(rel_path.parts)

    # Packaging metadata directories are of no interest.
    if components[0].endswith(".dist-info"):
        return None

    suffix = rel_path.suffix

    if suffix == ".py":
        resource = _module_resource(
            components[:-1], rel_path.stem, path, PythonResourceType.SOURCE
        )
        seen_packages.add(resource.package)
        return resource

    if suffix == ".pyc":
        if len(components) < 2:
            raise ValueError(f"encountered .pyc file with invalid path: {rel_str}")

        if components[-2] != "__pycache__":
            return PythonResource(
                package=".".join(components[:-1]),
                stem=components[-1],
                full_name=".".join(components),
                path=path,
                flavor=PythonResourceType.OTHER,
            )

        # Files look like <package>/__pycache__/<module>.cpython-37.opt-1.pyc
        module_name = ".".join(rel_path.stem.split(".")[:-1])
        if rel_str.endswith(".opt-1.pyc"):
            flavor = PythonResourceType.BYTECODE_OPT1
        elif rel_str.endswith(".opt-2.pyc"):
            flavor = PythonResourceType.BYTECODE_OPT2
        else:
            flavor = PythonResourceType.BYTECODE
        resource = _module_resource(components[:-2], module_name, path, flavor)
        seen_packages.add(resource.package)
        return resource

    name = ".".join(components)
    package = ".".join(components[:-1]) or name
    return PythonResource(
        package=package,
        stem=components[-1],
        full_name=name,
        path=path,
        flavor=PythonResourceType.RESOURCE,
    )


def _rehome_resource(
    resource: PythonResource, seen_packages: set[str]
) -> PythonResource | None:
    """Attach a resource file to the nearest enclosing known package."""
    if resource.package in seen_packages:
        return resource
    if not resource.package:
        return None

    components = resource.package.split(".")
    shifted: list[str] = []
    while components:
        shifted.append(components.pop())
        new_package = ".".join(components)
        if new_package in seen_packages:
            prefix = ".".join(reversed(shifted))
            # A slash mirrors how the file sits on the filesystem.
            return replace(
                resource, package=new_package, stem=f"{prefix}/{resource.stem}"
            )

    # No known package contains this resource; hand it on unchanged.
    return resource


def find_python_resources(root_path: str | os.PathLike[str]) -> Iterator[PythonResource]:
    """Yield the Python resources below ``root_path``.

    Modules and bytecode are yielded as they are found; resource files are
    yielded afterwards, once every package in the tree is known.
    """
    root = Path(root_path)
    seen_packages: set[str] = set()
    pending: list[PythonResource] = []

    for path in walk_tree_files(root):
        resource = _classify(path, root, seen_packages)
        if resource is None:
            continue
        if resource.flavor is PythonResourceType.RESOURCE:
            pending.append(resource)
        else:
            yield resource

    for resource in pending:
        rehomed = _rehome_resource(resource, seen_packages)
        if rehomed is not None:
            yield rehomed


def find_python_modules(root_path: str | os.PathLike[str]) -> dict[str, bytes]:
    """Map the dotted name of every Python source module below ``root_path`` to its content."""
    modules = {
        resource.full_name: resource.path.read_bytes()
        for resource in find_python_resources(root_path)
        if resource.flavor is PythonResourceType.SOURCE
    }
    return dict(sorted(modules.items()))