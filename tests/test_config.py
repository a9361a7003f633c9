"""Tests for the YAML configuration service."""
import pytest

from flow_core.services.config_service import (
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_MAX_EXECUTION_TIME,
    clear_config_cache,
    get_capability_settings,
    get_executor_settings,
    get_http_settings,
    load_config,
)
from flow_core.orchestrator import WorkflowExecutor


CONFIG = """
executor:
  max_execution_time: 12
http:
  timeout: 4
capabilities:
  base_url: http://services.local/api
  overrides:
    language:
      available: true
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "custom.yaml"
    path.write_text(CONFIG)
    return path


class TestLoadConfig:
    def test_missing_default_is_empty(self):
        assert load_config() == {}

    def test_missing_explicit_path_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yaml")

    def test_default_file_in_cwd(self, tmp_path):
        (tmp_path / "flow.yaml").write_text("http:\n  timeout: 9\n")
        assert get_http_settings()["timeout"] == 9

    def test_env_path(self, config_file, monkeypatch):
        monkeypatch.setenv("FLOW_CONFIG_PATH", str(config_file))
        assert load_config()["executor"]["max_execution_time"] == 12

    def test_cached_until_cleared(self, config_file):
        assert load_config(config_file)["http"]["timeout"] == 4
        config_file.write_text("http:\n  timeout: 8\n")
        assert load_config(config_file)["http"]["timeout"] == 4
        clear_config_cache()
        assert load_config(config_file)["http"]["timeout"] == 8


class TestSettings:
    def test_defaults(self):
        assert get_executor_settings()["max_execution_time"] == DEFAULT_MAX_EXECUTION_TIME
        assert get_http_settings()["timeout"] == DEFAULT_HTTP_TIMEOUT
        assert get_capability_settings() == {"overrides": {}}

    def test_from_file(self, config_file):
        assert get_executor_settings(config_file)["max_execution_time"] == 12
        assert get_http_settings(config_file)["timeout"] == 4
        settings = get_capability_settings(config_file)
        assert settings["base_url"] == "http://services.local/api"
        assert settings["overrides"] == {"language": {"available": True}}

    def test_env_overrides_file(self, config_file, monkeypatch):
        monkeypatch.setenv("FLOW_MAX_EXECUTION_TIME", "2.5")
        monkeypatch.setenv("FLOW_HTTP_TIMEOUT", "1")
        monkeypatch.setenv("FLOW_CAPABILITY_BASE_URL", "http://elsewhere")
        assert get_executor_settings(config_file)["max_execution_time"] == 2.5
        assert get_http_settings(config_file)["timeout"] == 1
        assert get_capability_settings(config_file)["base_url"] == "http://elsewhere"

    def test_executor_reads_config(self, config_file, monkeypatch):
        monkeypatch.setenv("FLOW_CONFIG_PATH", str(config_file))
        executor = WorkflowExecutor()
        assert executor.max_execution_time == 12
        assert WorkflowExecutor(max_execution_time=3).max_execution_time == 3
