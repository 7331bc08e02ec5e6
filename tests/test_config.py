# tests/test_config.py
"""Tests for CatalogConfig."""

import os

from sonnetdoc.config import DEFAULT_ENTRY_FILE, CatalogConfig


class TestCatalogConfig:

    def test_defaults(self):
        config = CatalogConfig()
        assert config.max_depth == 400
        assert config.search_paths == ()
        assert config.sort_keys is False
        assert config.show_opaque is False
        assert DEFAULT_ENTRY_FILE == "main.libsonnet"

    def test_validate_ok(self, tmp_path):
        assert CatalogConfig(search_paths=(str(tmp_path),)).validate() == []

    def test_validate_reports_problems(self, tmp_path):
        warnings = CatalogConfig(
            max_depth=0, search_paths=(str(tmp_path / "missing"),)
        ).validate()
        assert len(warnings) == 2

    def test_from_env(self):
        env = {
            "JSONNET_PATH": os.pathsep.join(["a", "", "b"]),
            "SONNETDOC_MAX_DEPTH": "25",
        }
        config = CatalogConfig.from_env(env)
        assert config.search_paths == ("a", "b")
        assert config.max_depth == 25

    def test_from_env_ignores_bad_depth(self, caplog):
        config = CatalogConfig.from_env({"SONNETDOC_MAX_DEPTH": "deep"})
        assert config.max_depth == 400
        assert "SONNETDOC_MAX_DEPTH" in caplog.text

    def test_from_empty_env(self):
        assert CatalogConfig.from_env({}) == CatalogConfig()

    def test_with_search_paths_appends(self):
        config = CatalogConfig(search_paths=("env",)).with_search_paths(("cli",))
        assert config.search_paths == ("env", "cli")
