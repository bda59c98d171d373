"""Turning individual packaging rules into actions on Python resources."""

from __future__ import annotations

import enum
import logging
import os
import subprocess
import tempfile
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .fsscan import PythonResourceType, find_python_resources
from .resources import DistributionInfo, ExtensionModule, is_stdlib_test_package
from .rules import (
    InstallLocation,
    PackagingPackageRoot,
    PackagingPipInstallSimple,
    PackagingPipRequirementsFile,
    PackagingSetupPyInstall,
    PackagingStdlib,
    PackagingStdlibExtensionsExplicitExcludes,
    PackagingStdlibExtensionsExplicitIncludes,
    PackagingStdlibExtensionsPolicy,
    PackagingStdlibExtensionVariant,
    PackagingVirtualenv,
)

__all__ = [
    "NON_GPL_LICENSES",
    "ResourceAction",
    "ExtensionModuleResource",
    "ModuleSource",
    "ModuleBytecode",
    "ResourceData",
    "PackagedResource",
    "PythonResourceAction",
    "resolve_stdlib_extensions_policy",
    "resolve_stdlib_extensions_explicit_includes",
    "resolve_stdlib_extensions_explicit_excludes",
    "resolve_stdlib_extension_variant",
    "resolve_stdlib",
    "resolve_virtualenv",
    "resolve_package_root",
    "resolve_pip_install_simple",
    "resolve_pip_requirements_file",
    "resolve_setup_py_install",
]

logger = logging.getLogger(__name__)

# An allow list is safer than a deny list: a new GPL variant cannot slip through.
NON_GPL_LICENSES: frozenset[str] = frozenset(
    {"BSD-3-Clause", "bzip2-1.0.6", "MIT", "OpenSSL", "Sleepycat", "X11", "Zlib"}
)

_PIP_EXE_BASENAME = "pip3.exe" if os.name == "nt" else "pip3"


class ResourceAction(enum.Enum):
    """Whether a resource is added to or removed from the packaged set."""

    ADD = "add"
    REMOVE = "remove"


@dataclass(frozen=True)
class ExtensionModuleResource:
    """An extension module to link into the interpreter."""

    name: str
    module: ExtensionModule


@dataclass(frozen=True)
class ModuleSource:
    """The source code of a Python module."""

    name: str
    source: bytes


@dataclass(frozen=True)
class ModuleBytecode:
    """A request to compile a module's source to bytecode."""

    name: str
    source: bytes
    optimize_level: int


@dataclass(frozen=True)
class ResourceData:
    """A non-module data file belonging to a package."""

    package: str
    name: str
    data: bytes


PackagedResource = Union[ExtensionModuleResource, ModuleSource, ModuleBytecode, ResourceData]


@dataclass(frozen=True)
class PythonResourceAction:
    """An action on a resource at an install location."""

    action: ResourceAction
    location: InstallLocation
    resource: PackagedResource


def _add_extension(name: str, module: ExtensionModule) -> PythonResourceAction:
    return PythonResourceAction(
        ResourceAction.ADD, InstallLocation(), ExtensionModuleResource(name, module)
    )


def _pick_minimal(name: str, variants: Sequence[ExtensionModule]) -> ExtensionModule | None:
    em = variants[0]
    return em if em.builtin_default or em.required else None


def _pick_all(name: str, variants: Sequence[ExtensionModule]) -> ExtensionModule | None:
    return variants[0]


def _pick_no_libraries(
    name: str, variants: Sequence[ExtensionModule]
) -> ExtensionModule | None:
    return next((em for em in variants if not em.links), None)


def _is_not_gpl(name: str, em: ExtensionModule) -> bool:
    if not em.links:
        return True
    if em.license_public_domain is True:
        return True
    if em.licenses is not None:
        return all(license in NON_GPL_LICENSES for license in em.licenses)
    # Without evidence that it isn't GPL, assume it is.
    logger.info("unable to determine %s is not GPL; ignoring", name)
    return False


def _pick_no_gpl(name: str, variants: Sequence[ExtensionModule]) -> ExtensionModule | None:
    return next((em for em in variants if _is_not_gpl(name, em)), None)


_POLICIES: dict[str, Callable[[str, Sequence[ExtensionModule]], ExtensionModule | None]] = {
    "minimal": _pick_minimal,
    "all": _pick_all,
    "no-libraries": _pick_no_libraries,
    "no-gpl": _pick_no_gpl,
}


def resolve_stdlib_extensions_policy(
    dist: DistributionInfo, rule: PackagingStdlibExtensionsPolicy
) -> list[PythonResourceAction]:
    """Add the extension modules that the rule's policy allows."""
    if not dist.extension_modules:
        return []
    pick = _POLICIES.get(rule.policy)
    if pick is None:
        raise ValueError(f"illegal policy value: {rule.policy}")

    actions = []
    for name, variants in sorted(dist.extension_modules.items()):
        em = pick(name, variants)
        if em is not None:
            actions.append(_add_extension(name, em))
    return actions


def resolve_stdlib_extensions_explicit_includes(
    dist: DistributionInfo, rule: PackagingStdlibExtensionsExplicitIncludes
) -> list[PythonResourceAction]:
    """Add the listed extension modules that the distribution provides."""
    return [
        _add_extension(name, dist.extension_modules[name][0])
        for name in rule.includes
        if name in dist.extension_modules
    ]


def resolve_stdlib_extensions_explicit_excludes(
    dist: DistributionInfo, rule: PackagingStdlibExtensionsExplicitExcludes
) -> list[PythonResourceAction]:
    """Remove the listed extension modules and add every other one."""
    excluded = set(rule.excludes)
    return [
        PythonResourceAction(
            ResourceAction.REMOVE if name in excluded else ResourceAction.ADD,
            InstallLocation(),
            ExtensionModuleResource(name, variants[0]),
        )
        for name, variants in sorted(dist.extension_modules.items())
    ]


def resolve_stdlib_extension_variant(
    dist: DistributionInfo, rule: PackagingStdlibExtensionVariant
) -> list[PythonResourceAction]:
    """Add the named variant of an extension module."""
    try:
        variants = dist.extension_modules[rule.extension]
    except KeyError:
        raise ValueError(f"unknown extension module: {rule.extension}") from None

    actions = [
        _add_extension(rule.extension, em) for em in variants if em.variant == rule.variant
    ]
    if not actions:
        raise ValueError(f"extension {rule.extension} has no variant {rule.variant}")
    return actions


def _module_actions(
    name: str,
    source: bytes,
    location: InstallLocation,
    include_source: bool,
    optimize_level: int,
) -> Iterable[PythonResourceAction]:
    if include_source:
        yield PythonResourceAction(ResourceAction.ADD, location, ModuleSource(name, source))
    yield PythonResourceAction(
        ResourceAction.ADD, location, ModuleBytecode(name, source, optimize_level)
    )


def resolve_stdlib(
    dist: DistributionInfo, rule: PackagingStdlib
) -> list[PythonResourceAction]:
    """Add the standard library's modules and, if asked, its resource files."""
    location = rule.install_location
    actions: list[PythonResourceAction] = []

    for name, fs_path in sorted(dist.py_modules.items()):
        if rule.exclude_test_modules and is_stdlib_test_package(name):
            logger.info("skipping test stdlib module: %s", name)
            continue
        source = Path(fs_path).read_bytes()
        actions.extend(
            _module_actions(name, source, location, rule.include_source, rule.optimize_level)
        )

    if rule.include_resources:
        for package, resources in sorted(dist.resources.items()):
            if rule.exclude_test_modules and is_stdlib_test_package(package):
                logger.info("skipping resources associated with test package: %s", package)
                continue
            for name, fs_path in sorted(resources.items()):
                actions.append(
                    PythonResourceAction(
                        ResourceAction.ADD,
                        location,
                        ResourceData(package, name, Path(fs_path).read_bytes()),
                    )
                )

    return actions


def _matches(full_name: str, prefixes: Iterable[str]) -> bool:
    return any(full_name == p or full_name.startswith(p + ".") for p in prefixes)


def _tree_actions(
    root: Path,
    location: InstallLocation,
    include_source: bool,
    optimize_level: int,
    relevant: Callable[[str], bool] = lambda name: True,
) -> list[PythonResourceAction]:
    actions: list[PythonResourceAction] = []
    for resource in find_python_resources(root):
        if not relevant(resource.full_name):
            continue
        if resource.flavor is PythonResourceType.SOURCE:
            actions.extend(
                _module_actions(
                    resource.full_name,
                    resource.path.read_bytes(),
                    location,
                    include_source,
                    optimize_level,
                )
            )
        elif resource.flavor is PythonResourceType.RESOURCE:
            actions.append(
                PythonResourceAction(
                    ResourceAction.ADD,
                    location,
                    ResourceData(resource.package, resource.stem, resource.path.read_bytes()),
                )
            )
    return actions


def _site_packages(dist: DistributionInfo, prefix: str | os.PathLike[str]) -> Path:
    lib = "Lib" if dist.os == "windows" else "lib"
    return Path(prefix) / lib / f"python{dist.version[:3]}" / "site-packages"


def resolve_virtualenv(
    dist: DistributionInfo, rule: PackagingVirtualenv
) -> list[PythonResourceAction]:
    """Add the modules and resources installed in a virtualenv's site-packages."""
    return _tree_actions(
        _site_packages(dist, rule.path),
        rule.install_location,
        rule.include_source,
        rule.optimize_level,
        lambda name: not _matches(name, rule.excludes),
    )


def resolve_package_root(rule: PackagingPackageRoot) -> list[PythonResourceAction]:
    """Add the listed packages found below a directory, minus the excluded ones."""
    return _tree_actions(
        Path(rule.path),
        rule.install_location,
        rule.include_source,
        rule.optimize_level,
        lambda name: _matches(name, rule.packages) and not _matches(name, rule.excludes),
    )


def _ensure_pip(dist: DistributionInfo) -> Path:
    pip_path = Path(dist.python_exe).parent / _PIP_EXE_BASENAME
    if not pip_path.exists():
        subprocess.run([os.fspath(dist.python_exe), "-m", "ensurepip"], check=False)
    return pip_path


def _run_logged(args: list[str], error: str, cwd: str | None = None) -> None:
    with subprocess.Popen(args, stdout=subprocess.PIPE, text=True, cwd=cwd) as proc:
        assert proc.stdout is not None
        for line in proc.stdout:
            logger.info("%s", line.rstrip("\n"))
        status = proc.wait()
    if status != 0:
        raise RuntimeError(error)


def _pip_install(
    dist: DistributionInfo,
    extra_args: list[str],
    location: InstallLocation,
    include_source: bool,
    optimize_level: int,
    relevant: Callable[[str], bool] = lambda name: True,
) -> list[PythonResourceAction]:
    _ensure_pip(dist)
    with tempfile.TemporaryDirectory(prefix="pyrepackager-pip-install") as temp_dir:
        logger.info("pip installing to %s", temp_dir)
        _run_logged(
            [
                os.fspath(dist.python_exe),
                "-m",
                "pip",
                "--disable-pip-version-check",
                "install",
                "--target",
                temp_dir,
                *extra_args,
            ],
            "error running pip",
        )
        return _tree_actions(Path(temp_dir), location, include_source, optimize_level, relevant)


def resolve_pip_install_simple(
    dist: DistributionInfo, rule: PackagingPipInstallSimple
) -> list[PythonResourceAction]:
    """Install a package with pip and add what it installed."""
    return _pip_install(
        dist,
        [rule.package],
        rule.install_location,
        rule.include_source,
        rule.optimize_level,
        lambda name: not _matches(name, rule.excludes),
    )


def resolve_pip_requirements_file(
    dist: DistributionInfo, rule: PackagingPipRequirementsFile
) -> list[PythonResourceAction]:
    """Install a requirements file from source with pip and add what it installed."""
    return _pip_install(
        dist,
        ["--no-binary", ":all:", "--requirement", rule.requirements_path],
        rule.install_location,
        rule.include_source,
        rule.optimize_level,
    )


def resolve_setup_py_install(
    dist: DistributionInfo, rule: PackagingSetupPyInstall
) -> list[PythonResourceAction]:
    """Run a package's ``setup.py install`` and add what it installed."""
    with tempfile.TemporaryDirectory(prefix="pyrepackager-setup-py-install") as temp_dir:
        logger.info("python setup.py installing to %s", temp_dir)
        _run_logged(
            [
                os.fspath(dist.python_exe),
                "setup.py",
                "install",
                "--prefix",
                temp_dir,
                "--no-compile",
            ],
            "error running setup.py",
            cwd=rule.path,
        )
        return _tree_actions(
            _site_packages(dist, temp_dir),
            rule.install_location,
            rule.include_source,
            rule.optimize_level,
        )