"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "CATIMP_"
DEFAULT_CONFIG_PATH = Path("~/.config/catalog-import/config.yaml")

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("storage", "db_path"): "db_path",
    ("import", "max_file_bytes"): "max_file_bytes",
    ("import", "skip_hidden"): "skip_hidden",
    ("import", "include_unknown"): "include_unknown",
    ("import", "default_group_name"): "default_group_name",
    ("import", "session_ttl_seconds"): "session_ttl_seconds",
    ("naming", "collapsible_prefixes"): "collapsible_prefixes",
    ("naming", "stage_aliases"): "stage_aliases",
    ("naming", "type_aliases"): "type_aliases",
    ("logging", "json"): "log_json",
}

DEFAULT_STAGE_ALIASES: dict[str, str] = {
    "a.moniteur": "AIDE MONITEUR",
    "aide moniteur": "AIDE MONITEUR",
    "aide_moniteur": "AIDE MONITEUR",
    "app": "APP",
    "be": "BE",
    "bs": "BS",
    "cat1": "CAT1",
    "cat 1": "CAT1",
    "cat2": "CAT2",
    "cat 2": "CAT2",
    "moniteur": "MONITEUR",
    "off": "OFF",
}

DEFAULT_TYPE_ALIASES: dict[str, str] = {
    "p.specialite": "P.SPECIALITE",
    "p.sportif": "P.SPORTIF",
    "p.militaire": "P.MILITAIRE",
    "specialite": "P.SPECIALITE",
    "sportif": "P.SPORTIF",
    "militaire": "P.MILITAIRE",
}


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    db_path: Path = Field(default=Path.home() / ".catalog-import" / "catalog.db")
    max_file_bytes: int = Field(default=50 * 1024 * 1024, ge=1)
    skip_hidden: bool = True
    include_unknown: bool = True
    default_group_name: str = "Général"
    session_ttl_seconds: int = Field(default=3600, ge=1)
    collapsible_prefixes: tuple[str, ...] = ("P.",)
    stage_aliases: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_STAGE_ALIASES))
    type_aliases: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_TYPE_ALIASES))
    log_json: bool = True

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("db_path", mode="before")
    @classmethod
    def _expand_db_path(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("db_path must be a path or string")

    @field_validator("collapsible_prefixes", mode="before")
    @classmethod
    def _split_prefixes(cls, value: Any) -> Any:
        if isinstance(value, str):
            return tuple(part.strip() for part in value.split(",") if part.strip())
        return value

    @field_validator("default_group_name")
    @classmethod
    def _require_group_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("default_group_name must not be blank")
        return value.strip()

    @field_validator("stage_aliases", "type_aliases", mode="before")
    @classmethod
    def _parse_aliases(cls, value: Any) -> Any:
        # env form: "cat 3=CAT3,aide=AIDE MONITEUR"
        if isinstance(value, str):
            pairs = (item.split("=", 1) for item in value.split(",") if "=" in item)
            value = {key: alias.strip() for key, alias in pairs}
        if isinstance(value, Mapping):
            return {str(key).strip().lower(): alias for key, alias in value.items()}
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
    """Flatten nested YAML configuration to Settings field names.

    Mapping-valued settings (the alias tables) are taken whole once their
    section path is recognised instead of being flattened further.
    """
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        mapped_key = _YAML_KEY_MAP.get(next_prefix)
        if mapped_key:
            flat[mapped_key] = value
        elif isinstance(value, Mapping):
            flat.update(_flatten_yaml(value, prefix=next_prefix))
        elif key in Settings.model_fields:
            flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map environment variables with CATIMP_ prefix into Settings fields."""
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


__all__ = ["Settings", "get_settings"]
