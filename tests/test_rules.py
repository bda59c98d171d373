import pytest

from pyrepackager.rules import (
    InstallLocation,
    PackagingPackageRoot,
    PackagingStdlib,
    PackagingVirtualenv,
    RawAllocator,
    RunModule,
    RunNoop,
    resolve_install_location,
)


def test_resolve_embedded():
    location = resolve_install_location("embedded")
    assert location.embedded
    assert location == InstallLocation()


def test_resolve_app_relative():
    location = resolve_install_location("app-relative:lib")
    assert not location.embedded
    assert location.path == "lib"


def test_resolve_app_relative_empty_path():
    location = resolve_install_location("app-relative:")
    assert location.path == ""
    assert not location.embedded


@pytest.mark.parametrize("value", ["", "Embedded", "app-relative", "elsewhere"])
def test_resolve_invalid(value):
    with pytest.raises(ValueError, match="invalid install_location"):
        resolve_install_location(value)


def test_raw_allocator_values():
    assert RawAllocator("jemalloc") is RawAllocator.JEMALLOC
    assert RawAllocator("rust") is RawAllocator.RUST
    assert RawAllocator("system") is RawAllocator.SYSTEM
    with pytest.raises(ValueError):
        RawAllocator("malloc")


def test_stdlib_defaults():
    rule = PackagingStdlib()
    assert rule.optimize_level == 0
    assert rule.exclude_test_modules is True
    assert rule.include_source is True
    assert rule.include_resources is False
    assert rule.install_location.embedded


def test_list_defaults_are_independent():
    first = PackagingVirtualenv(path="a")
    second = PackagingVirtualenv(path="b")
    first.excludes.append("x")
    assert second.excludes == []


def test_package_root_fields():
    rule = PackagingPackageRoot(path="src", packages=["foo"])
    assert rule.packages == ["foo"]
    assert rule.excludes == []
    assert rule.include_source is True


def test_run_modes_compare_by_value():
    assert RunModule("foo") == RunModule("foo")
    assert RunModule("foo") != RunModule("bar")
    assert RunNoop() == RunNoop()