"""Tests for settings loading."""

import pytest
from declassify.setting import DeclassifySettings, get_settings, load_settings


class TestSettings:
    def test_defaults(self):
        settings = DeclassifySettings()
        assert settings.framework_modules == ["react"]
        assert settings.global_names == ["React"]
        assert settings.props_param_name == "props"
        assert ".tsx" in settings.extensions
        assert "node_modules" in settings.skip_directories

    def test_load_yaml_section(self, tmp_path):
        path = tmp_path / "declassify.yaml"
        path.write_text("declassify:\n  framework_modules: [react, preact/compat]\n  props_param_name: p\n")
        settings = load_settings(path)
        assert settings.framework_modules == ["react", "preact/compat"]
        assert settings.props_param_name == "p"
        assert settings.global_names == ["React"]

    def test_load_flat_yaml(self, tmp_path):
        path = tmp_path / "flat.yaml"
        path.write_text("global_names: [R]\n")
        assert load_settings(str(path)).global_names == ["R"]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_settings(path) == DeclassifySettings()

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.yaml")

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
        assert get_settings().framework_modules == ["react"]
