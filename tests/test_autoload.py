"""Tests for service package discovery and loading."""

import os
import sys
from importlib.metadata import PackagePath

import pytest

from cloudhub.base import autoload, defaults, config as config_module
from cloudhub.base.autoload import ServiceLoader, auto_load_files
from cloudhub.base.services import service_registry

PLUGIN_SOURCE = """
from pathlib import Path

with Path(__file__).with_suffix(".log").open("a") as fh:
    fh.write("loaded\\n")
"""


REGISTERING_SOURCE = """
from cloudhub.base.defaults import configure
from cloudhub.base.services import register_service

register_service("half", lambda settings: settings)
configure().add_config("half").add_field("bucket", "b1")
configure().add_alias("half_project", "project_id")
"""


def load_count(path):
    log = path.with_suffix(".log")
    return len(log.read_text().splitlines()) if log.exists() else 0


@pytest.fixture
def plugin(tmp_path):
    """A service package module that records each time it is executed."""
    path = tmp_path / "cloudhub_fake_storage.py"
    path.write_text(PLUGIN_SOURCE)
    yield path
    sys.modules.pop("cloudhub_fake_storage", None)


class FakeDist:
    def __init__(self, name, version, files, root):
        self.metadata = {"Name": name}
        self.version = version
        self.files = [PackagePath(f) for f in files] if files is not None else None
        self._root = root

    def locate_file(self, path):
        return self._root / path


# ══════════════════════════════════════════════════════════════════════
# Loader
# ══════════════════════════════════════════════════════════════════════

class TestServiceLoader:
    def test_loads_once(self, plugin):
        loader = ServiceLoader(finder=lambda: [str(plugin)])
        assert loader.load_all() == [os.path.realpath(plugin)]
        assert loader.load_all() == []
        assert load_count(plugin) == 1
        assert "cloudhub_fake_storage" in sys.modules

    def test_symlink_resolves_to_same_file(self, plugin, tmp_path):
        link = tmp_path / "linked" / "cloudhub_fake_storage.py"
        link.parent.mkdir()
        link.symlink_to(plugin)
        loader = ServiceLoader(finder=lambda: [str(link), str(plugin)])
        loader.load_all()
        assert load_count(plugin) == 1

    def test_skips_already_imported_modules(self):
        loader = ServiceLoader(finder=lambda: [config_module.__file__])
        assert loader.load_all() == []

    def test_loaded_files(self, plugin):
        loader = ServiceLoader(finder=lambda: [str(plugin)])
        loader.load_all()
        files = loader.loaded_files()
        assert os.path.realpath(plugin) in files
        assert os.path.realpath(config_module.__file__) in files

    def test_failure_propagates_and_stops(self, plugin, tmp_path):
        broken = tmp_path / "cloudhub_broken.py"
        broken.write_text("raise RuntimeError('corrupt package')\n")
        loader = ServiceLoader(finder=lambda: [str(broken), str(plugin)])

        with pytest.raises(RuntimeError, match="corrupt package"):
            loader.load_all()
        assert "cloudhub_broken" not in sys.modules
        assert load_count(plugin) == 0

    def test_failed_load_can_be_retried(self, tmp_path):
        broken = tmp_path / "cloudhub_flaky.py"
        broken.write_text("raise ImportError('missing dependency')\n")
        loader = ServiceLoader(finder=lambda: [str(broken)])
        with pytest.raises(ImportError):
            loader.load_all()
        broken.write_text("VALUE = 1\n")
        try:
            assert loader.load_all() == [os.path.realpath(broken)]
        finally:
            sys.modules.pop("cloudhub_flaky", None)

    def test_failed_load_rolls_back_registrations(self, tmp_path, monkeypatch):
        monkeypatch.setattr(defaults, "_config", None)
        flaky = tmp_path / "cloudhub_half.py"
        flaky.write_text(REGISTERING_SOURCE + "raise ImportError('missing dependency')\n")
        loader = ServiceLoader(finder=lambda: [str(flaky)])

        with pytest.raises(ImportError):
            loader.load_all()
        assert "half" not in service_registry
        assert "half" not in defaults.configure()
        assert "half_project" not in defaults.configure()
        assert defaults.configure().is_field("project_id")

        flaky.write_text(REGISTERING_SOURCE)
        try:
            assert loader.load_all() == [os.path.realpath(flaky)]
            assert "half" in service_registry
            assert defaults.configure().half.bucket == "b1"
        finally:
            sys.modules.pop("cloudhub_half", None)
            if "half" in service_registry:
                service_registry.unregister("half")

    def test_module_level_functions(self, plugin, monkeypatch):
        monkeypatch.setattr(autoload, "_loader", ServiceLoader(finder=lambda: [str(plugin)]))
        assert autoload.auto_load_packages() is None
        autoload.auto_load_packages()
        assert load_count(plugin) == 1
        assert os.path.realpath(plugin) in autoload.loaded_files()


# ══════════════════════════════════════════════════════════════════════
# Discovery
# ══════════════════════════════════════════════════════════════════════

class TestAutoLoadFiles:
    def test_top_level_matches_only(self, tmp_path, monkeypatch):
        dist = FakeDist(
            "cloudhub-storage",
            "1.0",
            [
                "cloudhub_storage.py",
                "cloudhub_storage/__init__.py",
                "pkg/cloudhub_nested.py",
                "other.py",
                "cloudhub_storage-1.0.dist-info/METADATA",
            ],
            tmp_path,
        )
        monkeypatch.setattr(autoload.metadata, "distributions", lambda: [dist])
        assert auto_load_files() == [str(tmp_path / "cloudhub_storage.py")]

    def test_preserves_enumeration_order(self, tmp_path, monkeypatch):
        dists = [
            FakeDist("cloudhub-pubsub", "1.0", ["cloudhub_pubsub.py"], tmp_path),
            FakeDist("cloudhub-dns", "1.0", ["cloudhub_dns.py"], tmp_path),
            FakeDist("no-files", "1.0", None, tmp_path),
        ]
        monkeypatch.setattr(autoload.metadata, "distributions", lambda: dists)
        assert auto_load_files() == [
            str(tmp_path / "cloudhub_pubsub.py"),
            str(tmp_path / "cloudhub_dns.py"),
        ]

    def test_latest_version_only(self, tmp_path, monkeypatch):
        old, new = tmp_path / "old", tmp_path / "new"
        dists = [
            FakeDist("cloudhub-storage", "1.2.0", ["cloudhub_storage.py"], old),
            FakeDist("Cloudhub_Storage", "1.10.0", ["cloudhub_storage.py"], new),
        ]
        monkeypatch.setattr(autoload.metadata, "distributions", lambda: dists)
        assert auto_load_files() == [str(new / "cloudhub_storage.py")]
        assert len(auto_load_files(latest_only=False)) == 2

    def test_unparseable_version_keeps_all(self, tmp_path, monkeypatch):
        dists = [
            FakeDist("cloudhub-storage", "1.0", ["cloudhub_storage.py"], tmp_path / "a"),
            FakeDist("cloudhub-storage", "bogus!", ["cloudhub_storage.py"], tmp_path / "b"),
        ]
        monkeypatch.setattr(autoload.metadata, "distributions", lambda: dists)
        assert len(auto_load_files()) == 2

    def test_custom_pattern(self, tmp_path, monkeypatch):
        dist = FakeDist("acme", "1.0", ["acme_plugin.py", "cloudhub_x.py"], tmp_path)
        monkeypatch.setattr(autoload.metadata, "distributions", lambda: [dist])
        assert auto_load_files("acme_*.py") == [str(tmp_path / "acme_plugin.py")]
