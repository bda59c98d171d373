# pyrepackager

`pyrepackager` helps work out what goes into an application that carries its
own Python interpreter. It scans directory trees for Python modules, bytecode
and resource files, describes packaging rules as plain data, turns each rule
into a list of add/remove actions on resources, and writes the packed module
and resource formats that an embedded importer reads.

It depends only on the standard library.

## Installation

```
pip install pyrepackager
```

To run the test suite:

```
pip install "pyrepackager[test]"
pytest
```

## Scanning directory trees (`pyrepackager.fsscan`)

```python
from pyrepackager.fsscan import find_python_resources, find_python_modules, PythonResourceType

for resource in find_python_resources("src"):
    print(resource.flavor, resource.package, resource.stem, resource.full_name)

sources = find_python_modules("src")   # {"pkg.mod": b"...source..."}, sorted by name
```

- `walk_tree_files(path)` yields every non-directory path below `path`,
  depth first and sorted by name; it raises `FileNotFoundError` if `path`
  does not exist.
- `find_python_resources(root_path)` yields `PythonResource` records
  (`package`, `stem`, `full_name`, `path`, `flavor`). `.py` files are
  `SOURCE`; `.pyc` files under `__pycache__` are `BYTECODE`,
  `BYTECODE_OPT1` or `BYTECODE_OPT2`; other `.pyc` files are `OTHER`;
  everything else is a `RESOURCE`. Files inside `*.dist-info` directories
  are skipped. Resource files are yielded last, attached to the nearest
  enclosing package that holds modules, with the remaining path joined to
  the stem by `/`. A `.pyc` file at the top of the tree raises `ValueError`.

## Packaging rules (`pyrepackager.rules`)

Dataclasses describing what to package: `PackagingStdlib`,
`PackagingStdlibExtensionsPolicy`, `PackagingStdlibExtensionsExplicitIncludes`,
`PackagingStdlibExtensionsExplicitExcludes`, `PackagingStdlibExtensionVariant`,
`PackagingVirtualenv`, `PackagingPackageRoot`, `PackagingPipInstallSimple`,
`PackagingPipRequirementsFile`, `PackagingSetupPyInstall`,
`PackagingFilterInclude` and `PackagingWriteLicenseFiles`; run modes
`RunNoop`, `RunRepl`, `RunModule` and `RunEval`; and the `RawAllocator` enum.

`resolve_install_location("embedded")` gives an embedded `InstallLocation`;
`resolve_install_location("app-relative:lib")` gives one with `path="lib"`;
any other value raises `ValueError`.

## Resources and packed formats (`pyrepackager.resources`)

- `DistributionInfo`, `ExtensionModule`, `LibraryDepends` and `LicenseInfo`
  describe an extracted Python distribution.
- `EmbeddedPythonResources` holds module sources, bytecode, resources and
  extension modules to embed. `modules_records()` returns a `ModuleEntry`
  per module in name order; `write_blobs(module_names_path, modules_path,
  resources_path)` writes the newline-separated module names, the packed
  modules and the packed resources.
- `AppRelativeResources.package_names()` lists the packages implied by its
  module names. `PythonResources` groups embedded and app-relative sets.
- `write_modules_entries(dest, entries)` writes a little-endian `u32` count,
  then name/source/bytecode lengths per entry, then all names, all sources
  and all bytecode.
- `write_resources_entries(dest, entries)` writes packages and resource
  names in sorted order: all lengths first, then all names, then all data.
- `is_stdlib_test_package(name)`, `packages_from_module_names(names)` and
  `read_resource_names_file(path)` (one name per line, blank lines and `#`
  comments skipped) are helpers used while filtering.

## Resolving rules to actions (`pyrepackager.packaging`)

Each `resolve_*` function takes a `DistributionInfo` and/or a rule and
returns a list of `PythonResourceAction` records (an `ADD` or `REMOVE`
`ResourceAction`, an `InstallLocation`, and an `ExtensionModuleResource`,
`ModuleSource`, `ModuleBytecode` or `ResourceData`).

```python
from pyrepackager.packaging import resolve_stdlib_extensions_policy
from pyrepackager.rules import PackagingStdlibExtensionsPolicy

actions = resolve_stdlib_extensions_policy(dist, PackagingStdlibExtensionsPolicy("no-gpl"))
```

- Extension policies are `minimal`, `all`, `no-libraries` and `no-gpl`
  (licences must all be in `NON_GPL_LICENSES`, or be public domain, or the
  module must link no libraries). Another policy raises `ValueError`.
- `resolve_stdlib_extension_variant` raises `ValueError` for an unknown
  extension or variant.
- `resolve_stdlib`, `resolve_virtualenv` and `resolve_package_root` read
  files from disk; modules yield a `ModuleSource` (when `include_source`)
  and a `ModuleBytecode` request.
- `resolve_pip_install_simple`, `resolve_pip_requirements_file` and
  `resolve_setup_py_install` run the distribution's interpreter (`pip` or
  `setup.py install`) into a temporary directory, log its output through
  the `logging` module and raise `RuntimeError` if it fails.

## What this package does not do

It does not read a TOML configuration file, combine the actions of many
rules into one final resource set, compile bytecode, download or unpack
Python distributions, generate C or interpreter configuration sources, or
install a built application. Those steps are left to the caller.