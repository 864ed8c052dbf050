"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

from legal_review.models.entities import EntryStatus

ENV_PREFIX = "LGR_"
DEFAULT_CONFIG_PATH = Path("~/.config/legal-review/config.yaml")

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("storage", "db_path"): "db_path",
    ("storage", "inbox_dir"): "inbox_dir",
    ("storage", "watch_inbox"): "watch_inbox",
    ("rules", "base_url"): "rules_base_url",
    ("rules", "extraction_file"): "rules_extraction_file",
    ("rules", "logic_file"): "rules_logic_file",
    ("rules", "timeout"): "rules_timeout",
    ("rules", "cache_seconds"): "rules_cache_seconds",
    ("gemini", "api_key"): "gemini_api_key",
    ("gemini", "generation_model"): "generation_model",
    ("embeddings", "backend"): "embedding_backend",
    ("embeddings", "model"): "embedding_model",
    ("embeddings", "dim"): "embedding_dim",
    ("retry", "max_retries"): "max_retries",
    ("retry", "initial_delay"): "retry_initial_delay",
    ("pipeline", "pacing_seconds"): "pacing_seconds",
    ("pipeline", "batch_size"): "batch_size",
    ("pipeline", "max_batch_size"): "max_batch_size",
    ("pipeline", "auto_statuses"): "auto_statuses",
    ("retrieval", "top_k"): "similar_top_k",
    ("review", "statuses"): "review_statuses",
}


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    db_path: Path = Field(default=Path.home() / ".legal-review" / "ledger.db")
    inbox_dir: Path = Field(default=Path.home() / ".legal-review" / "inbox")
    watch_inbox: bool = False
    rules_base_url: str = "https://raw.githubusercontent.com/Tea320771/myweb/main"
    rules_extraction_file: str = "reading_guide.json"
    rules_logic_file: str = "guideline.json"
    rules_timeout: float = 10.0
    rules_cache_seconds: float = 300.0
    gemini_api_key: str | None = None
    generation_model: str = "gemini-2.0-flash"
    embedding_backend: Literal["gemini", "hashed"] = "gemini"
    embedding_model: str = "models/text-embedding-004"
    embedding_dim: int = 768
    max_retries: int = Field(default=3, ge=0)
    retry_initial_delay: float = Field(default=2.0, ge=0)
    pacing_seconds: float = Field(default=4.0, ge=0)
    batch_size: int = Field(default=1, ge=1)
    max_batch_size: int = Field(default=5, ge=1)
    similar_top_k: int = Field(default=3, ge=1)
    review_statuses: list[str] = Field(default_factory=lambda: ["pending", "error"])
    auto_statuses: list[str] = Field(default_factory=lambda: ["pending", "error"])

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("db_path", "inbox_dir", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("paths must be a path or string")

    @field_validator("review_statuses", "auto_statuses", mode="before")
    @classmethod
    def _split_statuses(cls, value: Any) -> Any:
        # env overrides arrive as "pending,error"
        if isinstance(value, str):
            value = [part.strip() for part in value.split(",") if part.strip()]
        if isinstance(value, (list, tuple)):
            return [EntryStatus(item if isinstance(item, EntryStatus) else str(item).lower()).value for item in value]
        return value

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path and config_path.exists():
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            data.update(_flatten_yaml(raw))
        data.update(_load_env_overrides())
        return cls(**data)

    @staticmethod
    def _resolve_config_path(path: Path | None) -> Path | None:
        if path is not None:
            return path.expanduser()
        env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
        if env_path:
            return Path(env_path).expanduser()
        resolved_default = DEFAULT_CONFIG_PATH.expanduser()
        return resolved_default if resolved_default.exists() else None


def _flatten_yaml(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> dict[str, Any]:
    """Flatten nested YAML configuration to Settings field names."""
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        if isinstance(value, Mapping):
            flat.update(_flatten_yaml(value, prefix=next_prefix))
        else:
            mapped_key = _YAML_KEY_MAP.get(next_prefix)
            if mapped_key:
                flat[mapped_key] = value
            elif key in Settings.model_fields:
                flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map environment variables with LGR_ prefix into Settings fields."""
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields:
            overrides[field_name] = value
    if "gemini_api_key" not in overrides and os.environ.get("GEMINI_API_KEY"):
        overrides["gemini_api_key"] = os.environ["GEMINI_API_KEY"]
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor for dependency injection."""
    return Settings.from_yaml()


__all__ = ["Settings", "get_settings"]
