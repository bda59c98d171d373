from pathlib import Path

import pytest

from pyrepackager.fsscan import (
    PythonResourceType,
    find_python_modules,
    find_python_resources,
    walk_tree_files,
)


def _write(root: Path, rel: str, data: bytes = b"") -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


def _by_full_name(root):
    return {r.full_name: r for r in find_python_resources(root)}


def test_walk_tree_files_only_files(tmp_path):
    _write(tmp_path, "a/b/c.txt")
    _write(tmp_path, "z.txt")
    (tmp_path / "empty").mkdir()
    files = list(walk_tree_files(tmp_path))
    assert files == [tmp_path / "a" / "b" / "c.txt", tmp_path / "z.txt"]
    assert all(p.is_file() for p in files)


def test_walk_tree_files_missing_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        list(walk_tree_files(tmp_path / "missing"))


def test_package_and_module_sources(tmp_path):
    _write(tmp_path, "foo/__init__.py")
    _write(tmp_path, "foo/bar.py")
    found = _by_full_name(tmp_path)
    init = found["foo"]
    assert (init.package, init.stem, init.flavor) == ("foo", "", PythonResourceType.SOURCE)
    bar = found["foo.bar"]
    assert (bar.package, bar.stem) == ("foo", "bar")
    assert bar.path == tmp_path / "foo" / "bar.py"


def test_top_level_module(tmp_path):
    _write(tmp_path, "mod.py")
    (resource,) = list(find_python_resources(tmp_path))
    assert (resource.package, resource.stem, resource.full_name) == ("mod", "mod", "mod")


def test_bytecode_in_pycache(tmp_path):
    _write(tmp_path, "foo/__init__.py")
    _write(tmp_path, "foo/__pycache__/bar.cpython-37.pyc")
    found = _by_full_name(tmp_path)
    bytecode = found["foo.bar"]
    assert bytecode.flavor is PythonResourceType.BYTECODE
    assert bytecode.package == "foo"


@pytest.mark.parametrize(
    "name,flavor",
    [
        ("bar.cpython-37.opt-1.pyc", PythonResourceType.BYTECODE_OPT1),
        ("bar.cpython-37.opt-2.pyc", PythonResourceType.BYTECODE_OPT2),
    ],
)
def test_optimized_bytecode_flavor(tmp_path, name, flavor):
    _write(tmp_path, f"foo/__pycache__/{name}")
    flavors = [r.flavor for r in find_python_resources(tmp_path)]
    assert flavors == [flavor]


def test_pyc_outside_pycache_is_other(tmp_path):
    _write(tmp_path, "foo/bar.pyc")
    (resource,) = list(find_python_resources(tmp_path))
    assert resource.flavor is PythonResourceType.OTHER
    assert resource.full_name == "foo.bar.pyc"
    assert resource.stem == "bar.pyc"
    assert resource.package == "foo"


def test_pyc_at_root_is_an_error(tmp_path):
    _write(tmp_path, "bar.pyc")
    with pytest.raises(ValueError, match="invalid path"):
        list(find_python_resources(tmp_path))


def test_dist_info_is_skipped(tmp_path):
    _write(tmp_path, "foo-1.0.dist-info/METADATA")
    _write(tmp_path, "foo-1.0.dist-info/RECORD.py")
    assert list(find_python_resources(tmp_path)) == []


def test_resource_in_package(tmp_path):
    _write(tmp_path, "foo/__init__.py")
    _write(tmp_path, "foo/data.txt")
    found = _by_full_name(tmp_path)
    resource = found["foo.data.txt"]
    assert resource.flavor is PythonResourceType.RESOURCE
    assert (resource.package, resource.stem) == ("foo", "data.txt")


def test_resource_in_non_package_directory_is_rehomed(tmp_path):
    _write(tmp_path, "foo/__init__.py")
    _write(tmp_path, "foo/data/x.txt")
    found = _by_full_name(tmp_path)
    resource = found["foo.data.x.txt"]
    assert resource.package == "foo"
    assert resource.stem == "data/x.txt"


def test_unresolvable_resource_is_emitted_unchanged(tmp_path):
    _write(tmp_path, "other/x.txt")
    (resource,) = list(find_python_resources(tmp_path))
    assert (resource.package, resource.stem) == ("other", "x.txt")


def test_resources_come_after_modules(tmp_path):
    _write(tmp_path, "a/__init__.py")
    _write(tmp_path, "a/aaa.txt")
    _write(tmp_path, "b/__init__.py")
    flavors = [r.flavor for r in find_python_resources(tmp_path)]
    first_resource = flavors.index(PythonResourceType.RESOURCE)
    assert all(f is PythonResourceType.RESOURCE for f in flavors[first_resource:])
    assert flavors.count(PythonResourceType.SOURCE) == 2


def test_find_python_modules(tmp_path):
    _write(tmp_path, "foo/__init__.py", b"x = 1\n")
    _write(tmp_path, "foo/bar.py", b"y = 2\n")
    _write(tmp_path, "foo/data.txt", b"data")
    _write(tmp_path, "foo/__pycache__/bar.cpython-37.pyc", b"\x00")
    modules = find_python_modules(tmp_path)
    assert modules == {"foo": b"x = 1\n", "foo.bar": b"y = 2\n"}
    assert list(modules) == sorted(modules)