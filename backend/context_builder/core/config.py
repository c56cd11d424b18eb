"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "CTXB_"
DEFAULT_CONFIG_PATH = Path("~/.config/context-builder/config.yaml")

TokenBudgetPolicy = Literal["per_chunk", "cumulative"]

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("context", "max_tokens"): "max_tokens",
    ("context", "max_documents"): "max_documents",
    ("context", "relevance_threshold"): "relevance_threshold",
    ("context", "chunk_size"): "chunk_size",
    ("context", "cache_expiration_minutes"): "cache_expiration_minutes",
    ("context", "max_sentences_per_document"): "max_sentences_per_document",
    ("context", "token_budget_policy"): "token_budget_policy",
    ("embeddings", "backend"): "embedding_backend",
    ("embeddings", "model"): "embedding_model",
    ("embeddings", "dim"): "embedding_dim",
    ("logging", "level"): "log_level",
    ("logging", "json"): "log_json",
}


class ContextSettings(BaseModel):
    """Immutable knobs for a single context assembler."""

    max_tokens: int = Field(default=4000, gt=0)
    max_documents: int = Field(default=10, gt=0)
    relevance_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    chunk_size: int = Field(default=500, gt=0)
    cache_expiration_minutes: int = Field(default=30, gt=0)
    max_sentences_per_document: int = Field(default=5, gt=0)
    token_budget_policy: TokenBudgetPolicy = "per_chunk"

    model_config = {
        "frozen": True,
        "extra": "ignore",
    }

    @property
    def cache_ttl_seconds(self) -> float:
        return float(self.cache_expiration_minutes * 60)


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    max_tokens: int = Field(default=4000, gt=0)
    max_documents: int = Field(default=10, gt=0)
    relevance_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    chunk_size: int = Field(default=500, gt=0)
    cache_expiration_minutes: int = Field(default=30, gt=0)
    max_sentences_per_document: int = Field(default=5, gt=0)
    token_budget_policy: TokenBudgetPolicy = "per_chunk"
    embedding_backend: Literal["hashed", "sentence-transformers"] = "hashed"
    embedding_model: str = "intfloat/e5-small-v2"
    embedding_dim: int = Field(default=384, gt=0)
    log_level: str = "INFO"
    log_json: bool = True

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: Any) -> str:
        if isinstance(value, str):
            return value.upper()
        raise TypeError("log_level must be a string")

    def context_settings(self) -> ContextSettings:
        """Freeze the context-related fields for an assembler."""
        return ContextSettings(**self.model_dump(include=set(ContextSettings.model_fields)))

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
    """Map environment variables with CTXB_ prefix into Settings fields."""
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields:
            overrides[field_name] = value
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor for dependency injection."""
    return Settings.from_yaml()


__all__ = ["ContextSettings", "Settings", "TokenBudgetPolicy", "get_settings"]
