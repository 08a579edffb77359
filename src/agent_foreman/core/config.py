"""Configuration loading and validation."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

CONFIG_RELATIVE_PATH = Path("ai") / "foreman.yaml"


class LLMConfig(BaseModel):
    """LLM backend used by the AI judge."""
    mode: Literal["claude_cli", "litellm"] = "claude_cli"

    # Claude CLI settings
    claude_cli_executable: str = "claude"
    claude_cli_model: str = "sonnet"
    claude_cli_timeout: int = 300

    # LiteLLM direct settings
    litellm_api_key: Optional[str] = None
    litellm_api_base: Optional[str] = None
    litellm_model: str = "claude-sonnet-4-5-20250929"
    litellm_timeout: int = 300

    # Diffs above this size are truncated before being sent to the judge
    max_diff_chars: int = 60_000

    @field_validator("litellm_api_base")
    @classmethod
    def validate_api_base(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.startswith(("http://", "https://")):
            raise ValueError(
                f"litellm_api_base must start with http:// or https://, got '{v}'"
            )
        return v


class ChecksConfig(BaseModel):
    """Verification command settings."""
    timeout: int = 300  # Per-step timeout in seconds

    # Explicit commands override detection, keyed by check kind
    # (typecheck, lint, test, build, e2e)
    commands: Dict[str, str] = Field(default_factory=dict)

    # Selective test templates: "{files}" and "{pattern}" placeholders
    selective_file_template: Optional[str] = None
    selective_name_template: Optional[str] = None

    # E2E grep template: "{tags}" placeholder
    e2e_grep_template: Optional[str] = None

    # Characters of combined stdout/stderr kept per step
    output_tail_chars: int = 4000

    @field_validator("commands")
    @classmethod
    def validate_command_kinds(cls, v: Dict[str, str]) -> Dict[str, str]:
        allowed = {"typecheck", "lint", "test", "build", "e2e"}
        unknown = set(v) - allowed
        if unknown:
            raise ValueError(
                f"Unknown check kind(s) in checks.commands: {sorted(unknown)}. "
                f"Allowed: {sorted(allowed)}"
            )
        return v

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"checks.timeout must be >= 1, got {v}")
        return v


class GitignoreConfig(BaseModel):
    """Gitignore template cache settings."""
    cache_dir: Path = Field(default_factory=lambda: Path.home() / ".agent-foreman" / "gitignore-cache")
    cache_ttl_days: int = 7
    github_token: Optional[str] = None
    request_timeout: int = 10


class ForemanConfig(BaseSettings):
    """Top-level agent-foreman configuration."""
    llm: LLMConfig = Field(default_factory=LLMConfig)
    checks: ChecksConfig = Field(default_factory=ChecksConfig)
    gitignore: GitignoreConfig = Field(default_factory=GitignoreConfig)

    class Config:
        env_prefix = "FOREMAN_"
        env_file = ".env"
        env_nested_delimiter = "__"
        extra = "allow"


# Module-level mtime-based config cache: path -> (parsed_config, file_mtime)
_config_cache: Dict[str, tuple] = {}


def _get_cached_or_load(resolved_path: Path, loader):
    """Return cached config if file mtime unchanged, else reload."""
    key = str(resolved_path)
    try:
        current_mtime = resolved_path.stat().st_mtime
    except FileNotFoundError:
        _config_cache.pop(key, None)
        return None

    cached = _config_cache.get(key)
    if cached is not None:
        cached_result, cached_mtime = cached
        if cached_mtime == current_mtime:
            return cached_result

    result = loader(resolved_path)
    _config_cache[key] = (result, current_mtime)
    return result


def _expand_env_vars(data: Any, _path: str = "") -> Any:
    """Recursively expand ``${VAR}`` references in config data."""
    if isinstance(data, dict):
        return {k: _expand_env_vars(v, f"{_path}.{k}" if _path else k) for k, v in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item, f"{_path}[{i}]") for i, item in enumerate(data)]
    elif isinstance(data, str) and data.startswith("${") and data.endswith("}"):
        env_var = data[2:-1]
        value = os.environ.get(env_var)
        if value is None:
            logger.warning(
                f"Environment variable '{env_var}' not set (referenced at config path: {_path or 'root'}). "
                f"The literal string '{data}' will be used."
            )
            return data
        return value
    return data


def _load_config_from_file(config_path: Path) -> ForemanConfig:
    """Internal loader (no caching)."""
    with open(config_path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{config_path}: expected a mapping at top level, got {type(data).__name__}")
    return ForemanConfig(**_expand_env_vars(data))


def load_config(cwd: Path) -> ForemanConfig:
    """Load ``ai/foreman.yaml`` for a project, falling back to defaults.

    Uses mtime-based caching: returns the cached config if the file hasn't changed.
    """
    config_path = Path(cwd) / CONFIG_RELATIVE_PATH
    if not config_path.exists():
        logger.debug(f"Config file not found: {config_path}. Using default configuration.")
        return ForemanConfig()

    result = _get_cached_or_load(config_path.resolve(), _load_config_from_file)
    return result if result is not None else ForemanConfig()
