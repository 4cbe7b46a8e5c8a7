"""Tests for configuration loading and .env handling."""
import os

from fmeaflow.config.settings import (
    EXPORT_CONFIG,
    IMPORT_CONFIG,
    get_llm_config,
    load_config_overrides,
)
from fmeaflow.utils.env_loader import load_env_file


class TestLLMConfig:
    """Environment-driven LLM settings."""

    def test_defaults(self, monkeypatch):
        """Without variables the defaults apply."""
        for name in ("OPENAI_API_KEY", "LLM_API_KEY", "OPENAI_MODEL", "LLM_MODEL", "LLM_TEMPERATURE"):
            monkeypatch.delenv(name, raising=False)
        config = get_llm_config()
        assert config["api_key"] == ""
        assert config["model_name"] == "gpt-4o"
        assert config["temperature"] == 0.4

    def test_openai_prefix_wins(self, monkeypatch):
        """OPENAI_* takes precedence over LLM_*."""
        monkeypatch.setenv("OPENAI_API_KEY", "sk-openai")
        monkeypatch.setenv("LLM_API_KEY", "sk-llm")
        monkeypatch.setenv("LLM_MAX_TOKENS", "512")
        config = get_llm_config()
        assert config["api_key"] == "sk-openai"
        assert config["max_tokens"] == 512


class TestOverrides:
    """YAML override files."""

    def test_no_path(self):
        """No file gives copies of the defaults."""
        merged = load_config_overrides(None)
        assert merged["import"] == IMPORT_CONFIG
        assert merged["export"] == EXPORT_CONFIG
        merged["import"]["delimiter"] = ";"
        assert IMPORT_CONFIG["delimiter"] == ","

    def test_missing_file(self, tmp_path):
        """A missing file falls back to the defaults."""
        assert load_config_overrides(tmp_path / "absent.yaml")["import"] == IMPORT_CONFIG

    def test_sections_merged(self, tmp_path):
        """Known sections update the defaults, unknown ones are ignored."""
        path = tmp_path / "fmeaflow.yaml"
        path.write_text(
            "import:\n  delimiter: ';'\nexport:\n  effects_separator: ' | '\n"
            "llm:\n  model_name: local-model\nunknown:\n  x: 1\n",
            encoding="utf-8",
        )
        merged = load_config_overrides(path)
        assert merged["import"]["delimiter"] == ";"
        assert merged["import"]["carry_forward_sentinel"] == '"'
        assert merged["export"]["effects_separator"] == " | "
        assert merged["llm"]["model_name"] == "local-model"
        assert "unknown" not in merged

    def test_non_mapping_ignored(self, tmp_path):
        """A YAML list at top level is ignored."""
        path = tmp_path / "bad.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        assert load_config_overrides(path)["export"] == EXPORT_CONFIG

    def test_invalid_yaml_ignored(self, tmp_path):
        """A file that is not valid YAML falls back to the defaults."""
        path = tmp_path / "broken.yaml"
        path.write_text("import: [unclosed\n", encoding="utf-8")
        assert load_config_overrides(path)["import"] == IMPORT_CONFIG


class TestEnvLoader:
    """.env files."""

    def test_loads_values(self, tmp_path, monkeypatch):
        """Quoted values, export prefixes and comments are handled."""
        monkeypatch.delenv("FMEAFLOW_TEST_A", raising=False)
        monkeypatch.delenv("FMEAFLOW_TEST_B", raising=False)
        env = tmp_path / ".env"
        env.write_text(
            "# comment\nFMEAFLOW_TEST_A='alpha'\nexport FMEAFLOW_TEST_B=beta\nnot a pair\n",
            encoding="utf-8",
        )
        loaded = load_env_file(env)
        assert loaded == ["FMEAFLOW_TEST_A", "FMEAFLOW_TEST_B"]
        assert os.environ["FMEAFLOW_TEST_A"] == "alpha"
        assert os.environ["FMEAFLOW_TEST_B"] == "beta"
        monkeypatch.delenv("FMEAFLOW_TEST_A")
        monkeypatch.delenv("FMEAFLOW_TEST_B")

    def test_existing_env_wins(self, tmp_path, monkeypatch):
        """Variables already set are not overwritten."""
        monkeypatch.setenv("FMEAFLOW_TEST_C", "from-env")
        env = tmp_path / ".env"
        env.write_text("FMEAFLOW_TEST_C=from-file\n", encoding="utf-8")
        assert load_env_file(env) == []
        assert os.environ["FMEAFLOW_TEST_C"] == "from-env"

    def test_missing_file(self, tmp_path):
        """A missing file loads nothing."""
        assert load_env_file(tmp_path / "nope.env") == []
        assert load_env_file(None) == []
