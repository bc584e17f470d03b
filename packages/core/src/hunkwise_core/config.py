import os
from pathlib import Path
from typing import Optional

import yaml

PROVIDERS = ("anthropic", "openai", "openrouter")
STATE_STORES = ("comment", "sqlite", "noop")

DEFAULT_REVIEW_PROMPT = """You are an expert code reviewer. Today is {{DATE}}.
Please review the following code changes and provide constructive feedback.

Focus on:
- Potential bugs or incorrect behaviour
- Security concerns
- Performance considerations
- Code quality and maintainability

Provide specific, actionable feedback with line numbers when applicable."""

DEFAULT_CONFIG: dict = {
    "provider": "anthropic",
    "model": None,  # None = the provider's default model
    "review_prompt": None,  # None = use the built-in prompt
    "review_prompt_file": None,  # path to a prompt file; takes precedence over review_prompt
    "custom_prompt": None,  # appended to the base prompt as additional instructions
    "max_comments": 8,
    "ignore_patterns": [
        "*.lock",
        "*.log",
        "node_modules/**",
        "dist/**",
        "build/**",
        "*.min.js",
        "*.min.css",
    ],
    "max_chunk_bytes": 60000,
    "small_file_threshold": 300,
    "context_radius": 150,
    "boundary_lookback": 50,
    "max_retries": 2,
    "retry_delay": 1.0,
    "max_tokens": 4096,
    "max_workers": 1,
    "review_draft_prs": False,
    "state_store": "comment",
    "state_path": ".hunkwise.db",
    "state_author": None,  # only trust state comments by this login
}

_POSITIVE_INTS = (
    "max_comments",
    "max_chunk_bytes",
    "small_file_threshold",
    "context_radius",
    "max_tokens",
    "max_workers",
)


class ConfigError(ValueError):
    """Raised when the merged configuration cannot be used."""


def load_config(config_path: str = ".hunkwise.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .hunkwise.yml in the current directory
      3. CLI argument overrides
    """
    config = {**DEFAULT_CONFIG, "ignore_patterns": list(DEFAULT_CONFIG["ignore_patterns"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ConfigError(f"{config_path} must contain a YAML mapping.")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")
    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")
    config["openrouter_api_key"] = os.environ.get("OPENROUTER_API_KEY")

    return config


def validate_config(config: dict) -> dict:
    """Raise ConfigError for settings the pipeline cannot run with; return config unchanged."""
    if config.get("provider") not in PROVIDERS:
        raise ConfigError(f"Unknown provider: {config.get('provider')!r}. Choose one of {', '.join(PROVIDERS)}.")
    if config.get("state_store") not in STATE_STORES:
        raise ConfigError(
            f"Unknown state_store: {config.get('state_store')!r}. Choose one of {', '.join(STATE_STORES)}."
        )
    for key in _POSITIVE_INTS:
        value = config.get(key)
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ConfigError(f"{key} must be a positive integer, got {value!r}.")
    if isinstance(config.get("max_retries"), bool) or not isinstance(config.get("max_retries"), int):
        raise ConfigError(f"max_retries must be an integer, got {config.get('max_retries')!r}.")
    if config["max_retries"] < 0:
        raise ConfigError("max_retries must not be negative.")
    if not isinstance(config.get("retry_delay"), (int, float)) or config["retry_delay"] < 0:
        raise ConfigError("retry_delay must be a non-negative number.")
    if not isinstance(config.get("ignore_patterns"), list):
        raise ConfigError("ignore_patterns must be a list of glob patterns.")
    prompt_file = config.get("review_prompt_file")
    if prompt_file and not Path(prompt_file).is_file():
        raise ConfigError(f"Review prompt file not found: {prompt_file}")
    return config


def load_review_prompt(config: dict) -> str:
    """
    Load the base review prompt.

    If ``review_prompt_file`` is set in config, loads from that path (relative to cwd).
    Otherwise uses ``review_prompt`` or the built-in default.
    """
    custom_path = config.get("review_prompt_file")
    if custom_path:
        p = Path(custom_path)
        if not p.exists():
            raise FileNotFoundError(f"Review prompt file not found: {custom_path}")
        return p.read_text()

    return config.get("review_prompt") or DEFAULT_REVIEW_PROMPT
