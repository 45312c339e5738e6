"""
Tests for configuration loading.
"""

import json
from pathlib import Path

import pytest

from linkgraph.config import (
    DEFAULT_HUB_FILES,
    AuditThresholds,
    ConfigError,
    LinkGraphConfig,
    load_config,
)


@pytest.fixture
def config_file(tmp_path):
    def _write(data):
        path = tmp_path / "linkgraph.json"
        path.write_text(json.dumps(data) if not isinstance(data, str) else data, encoding="utf-8")
        return path

    return _write


class TestDefaults:

    def test_thresholds(self):
        limits = AuditThresholds()
        assert limits.broken_link_gate == 10
        assert limits.orphan_min_inbound == 2
        assert limits.detector_min_inbound == 1
        assert limits.max_crawl_depth == 4

    def test_reports_dir_defaults_under_site_root(self, tmp_path):
        config = LinkGraphConfig(site_root=tmp_path)
        assert config.reports_dir == tmp_path / "build"
        assert config.hub_files == DEFAULT_HUB_FILES


class TestLoadConfig:

    def test_file_values(self, config_file, tmp_path):
        path = config_file(
            {
                "site_root": str(tmp_path / "site"),
                "hub_files": ["a.html"],
                "thresholds": {"broken_link_gate": 5},
            }
        )
        config = load_config(path, environ={})
        assert config.site_root == tmp_path / "site"
        assert config.hub_files == ("a.html",)
        assert config.thresholds.broken_link_gate == 5
        assert config.thresholds.orphan_min_inbound == 2

    def test_environment_wins(self, config_file):
        path = config_file({"site_root": "from-file"})
        config = load_config(
            path,
            environ={"LINKGRAPH_SITE_ROOT": "/srv/site", "LINKGRAPH_BUILD_DIR": "/srv/reports"},
        )
        assert config.site_root == Path("/srv/site")
        assert config.reports_dir == Path("/srv/reports")

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.json", environ={})

    def test_invalid_json(self, config_file):
        with pytest.raises(ConfigError, match="Invalid JSON"):
            load_config(config_file("{not json"), environ={})

    def test_unknown_key(self, config_file):
        with pytest.raises(ConfigError, match="Unknown config"):
            load_config(config_file({"sitemap": True}), environ={})

    def test_unknown_threshold(self, config_file):
        with pytest.raises(ConfigError, match="Unknown threshold"):
            load_config(config_file({"thresholds": {"max_depth": 3}}), environ={})

    @pytest.mark.parametrize("value", [-1, "10", 2.5, True])
    def test_bad_threshold_value(self, config_file, value):
        with pytest.raises(ConfigError):
            load_config(config_file({"thresholds": {"broken_link_gate": value}}), environ={})

    def test_config_error_is_value_error(self):
        assert issubclass(ConfigError, ValueError)
