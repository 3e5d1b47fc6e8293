"""Tests for config loading and validation."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from hroas.config import load_config, read_api_keys
from hroas.schemas.config import ServiceConfig
from hroas.shared.errors import ConfigurationError


class TestServiceConfig:
    """Test the ServiceConfig Pydantic model directly."""

    def test_defaults(self) -> None:
        cfg = ServiceConfig()
        assert cfg.analysis_api_key_env == "OPENAI_API_KEY"
        assert cfg.analysis_max_completion_tokens == 1000
        assert cfg.strategy_model == "google/gemini-2.5-flash"
        assert cfg.strategy_temperature == 0.7
        assert cfg.strategy_format == "json"
        assert cfg.fetch_timeout == 5.0
        assert cfg.max_page_chars == 3000
        assert cfg.output_directory == "./output"

    def test_unknown_format_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ServiceConfig(strategy_format="yaml")

    @pytest.mark.parametrize(
        "field, value",
        [
            ("strategy_temperature", 2.5),
            ("fetch_timeout", 0),
            ("max_page_chars", 100),
            ("analysis_max_completion_tokens", 0),
        ],
    )
    def test_bounds(self, field: str, value: float) -> None:
        with pytest.raises(ValidationError):
            ServiceConfig(**{field: value})

    def test_key_env_names_required(self) -> None:
        with pytest.raises(ValidationError, match="must not be empty"):
            ServiceConfig(strategy_api_key_env="")


class TestLoadConfig:
    """Test YAML file loading."""

    def test_no_path_gives_defaults(self) -> None:
        assert load_config() == ServiceConfig()

    def test_load_valid(self, tmp_config: Path) -> None:
        cfg = load_config(tmp_config)
        assert cfg.strategy_temperature == 0.5
        assert cfg.output_directory.endswith("output")

    def test_file_not_found(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yml")

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "empty.yml"
        cfg_file.write_text("# nothing configured\n")
        assert load_config(cfg_file) == ServiceConfig()

    def test_non_mapping_rejected(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "list.yml"
        cfg_file.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="YAML mapping"):
            load_config(cfg_file)

    def test_invalid_values(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "bad.yml"
        cfg_file.write_text("strategy_format: xml\n")
        with pytest.raises(ValidationError):
            load_config(cfg_file)

    def test_shipped_example_config_is_valid(self) -> None:
        example = Path(__file__).parent.parent / "hroas.yml"
        assert load_config(example) == ServiceConfig()


class TestReadApiKeys:
    def test_reads_configured_env_vars(self, api_keys) -> None:
        assert read_api_keys(ServiceConfig()) == ("sk-analysis", "sk-strategy")

    def test_custom_env_names(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_ANALYSIS_KEY", "a")
        monkeypatch.setenv("MY_GATEWAY_KEY", "b")
        cfg = ServiceConfig(analysis_api_key_env="MY_ANALYSIS_KEY", strategy_api_key_env="MY_GATEWAY_KEY")
        assert read_api_keys(cfg) == ("a", "b")

    def test_missing_key(self, no_api_keys, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "sk-analysis")
        with pytest.raises(ConfigurationError, match="API keys are not configured"):
            read_api_keys(ServiceConfig())

    def test_blank_key_counts_as_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "  ")
        monkeypatch.setenv("AI_GATEWAY_API_KEY", "sk-strategy")
        with pytest.raises(ConfigurationError):
            read_api_keys(ServiceConfig())
