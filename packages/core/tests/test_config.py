"""Tests for configuration loading and validation."""

import pytest

from hunkwise_core.config import DEFAULT_REVIEW_PROMPT, ConfigError, load_config, load_review_prompt, validate_config


def test_defaults_applied_when_no_config_file(tmp_path):
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["provider"] == "anthropic"
    assert config["model"] is None
    assert config["max_chunk_bytes"] == 60000
    assert config["max_retries"] == 2
    assert config["retry_delay"] == 1.0
    assert config["state_store"] == "comment"
    assert "*.lock" in config["ignore_patterns"]
    assert config["review_draft_prs"] is False


def test_config_file_overrides_defaults(tmp_path):
    cfg = tmp_path / ".hunkwise.yml"
    cfg.write_text("provider: openai\nmax_chunk_bytes: 30000\n")
    config = load_config(config_path=str(cfg))
    assert config["provider"] == "openai"
    assert config["max_chunk_bytes"] == 30000


def test_ignore_patterns_replaced_by_file(tmp_path):
    cfg = tmp_path / ".hunkwise.yml"
    cfg.write_text("ignore_patterns:\n  - migrations/\n  - '*.lock'\n")
    config = load_config(config_path=str(cfg))
    assert config["ignore_patterns"] == ["migrations/", "*.lock"]


def test_empty_config_file_uses_defaults(tmp_path):
    cfg = tmp_path / ".hunkwise.yml"
    cfg.write_text("")
    config = load_config(config_path=str(cfg))
    assert config["provider"] == "anthropic"


def test_non_mapping_config_file_raises(tmp_path):
    cfg = tmp_path / ".hunkwise.yml"
    cfg.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError):
        load_config(config_path=str(cfg))


def test_cli_overrides_config_file(tmp_path):
    cfg = tmp_path / ".hunkwise.yml"
    cfg.write_text("provider: openai\n")
    config = load_config(config_path=str(cfg), cli_overrides={"provider": "anthropic"})
    assert config["provider"] == "anthropic"


def test_none_cli_overrides_ignored(tmp_path):
    cfg = tmp_path / ".hunkwise.yml"
    cfg.write_text("provider: openai\n")
    config = load_config(config_path=str(cfg), cli_overrides={"provider": None})
    assert config["provider"] == "openai"


def test_env_vars_loaded(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "gh-token")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "ant-key")
    monkeypatch.setenv("OPENAI_API_KEY", "oai-key")
    monkeypatch.setenv("OPENROUTER_API_KEY", "or-key")
    config = load_config(config_path="nonexistent.yml")
    assert config["github_token"] == "gh-token"
    assert config["anthropic_api_key"] == "ant-key"
    assert config["openai_api_key"] == "oai-key"
    assert config["openrouter_api_key"] == "or-key"


def test_ignore_list_is_not_shared_reference(tmp_path):
    """Mutating one config's ignore list must not affect another."""
    config_a = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    config_b = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    config_a["ignore_patterns"].append("migrations/")
    assert "migrations/" not in config_b["ignore_patterns"]


class TestValidateConfig:
    def _config(self, tmp_path, **overrides):
        config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
        config.update(overrides)
        return config

    def test_defaults_are_valid(self, tmp_path):
        config = self._config(tmp_path)
        assert validate_config(config) is config

    def test_unknown_provider(self, tmp_path):
        with pytest.raises(ConfigError, match="provider"):
            validate_config(self._config(tmp_path, provider="llama"))

    def test_unknown_state_store(self, tmp_path):
        with pytest.raises(ConfigError, match="state_store"):
            validate_config(self._config(tmp_path, state_store="redis"))

    def test_non_positive_chunk_size(self, tmp_path):
        with pytest.raises(ConfigError, match="max_chunk_bytes"):
            validate_config(self._config(tmp_path, max_chunk_bytes=0))

    def test_negative_retries(self, tmp_path):
        with pytest.raises(ConfigError, match="max_retries"):
            validate_config(self._config(tmp_path, max_retries=-1))

    def test_zero_retries_allowed(self, tmp_path):
        validate_config(self._config(tmp_path, max_retries=0))

    def test_missing_prompt_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Review prompt file not found"):
            validate_config(self._config(tmp_path, review_prompt_file=str(tmp_path / "missing.md")))

    def test_existing_prompt_file_accepted(self, tmp_path):
        prompt_file = tmp_path / "prompt.md"
        prompt_file.write_text("Review carefully.")
        validate_config(self._config(tmp_path, review_prompt_file=str(prompt_file)))

    def test_config_error_is_value_error(self):
        assert issubclass(ConfigError, ValueError)


class TestLoadReviewPrompt:
    def test_builtin_prompt_by_default(self):
        assert load_review_prompt({}) == DEFAULT_REVIEW_PROMPT

    def test_inline_prompt(self):
        assert load_review_prompt({"review_prompt": "Be brief."}) == "Be brief."

    def test_prompt_file_takes_precedence(self, tmp_path):
        prompt_file = tmp_path / "prompt.md"
        prompt_file.write_text("# Custom Prompt")
        config = {"review_prompt": "inline", "review_prompt_file": str(prompt_file)}
        assert load_review_prompt(config) == "# Custom Prompt"

    def test_missing_prompt_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_review_prompt({"review_prompt_file": str(tmp_path / "missing.md")})
