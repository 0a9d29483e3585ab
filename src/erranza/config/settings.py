# src/erranza/config/settings.py
"""
Application settings (Pydantic).

Resolution order:
1. `ERRANZA_CONFIG_PATH` (a YAML file on disk), else the packaged `defaults.yaml`
2. whitelisted environment variables (`ERRANZA_LOG_LEVEL`, `ERRANZA_NARRATIVE_API_KEY`, ...)

Fit weights, tension thresholds and the affinity ladder are tuning knobs and live
in YAML; business logic reads them from `Settings`.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Callable, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field

from erranza.core.env import load_dotenv_if_present


def _yaml_mapping(text: str, *, source: str) -> dict[str, Any]:
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{source}: YAML root must be a mapping, got {type(data).__name__}")
    return data


def _load_config_yaml(filename: str, *, path: str | Path | None = None) -> dict[str, Any]:
    """Load `path` from disk when given, otherwise `filename` packaged in `erranza.config`."""
    if path:
        return _yaml_mapping(Path(path).read_text(encoding="utf-8"), source=str(path))
    text = resources.files("erranza.config").joinpath(filename).read_text(encoding="utf-8")
    return _yaml_mapping(text, source=filename)


class AppSettings(BaseModel):
    name: str = "Erranza"
    timezone: str = "Europe/London"
    http_timeout_seconds: float = 30
    log_level: str = "INFO"


class CatalogSettings(BaseModel):
    path: str = "data/catalogs/destinations.json"


class RespondentSettings(BaseModel):
    path: str = "data/respondents/responses.json"


class MatchStoreSettings(BaseModel):
    enabled: bool = False
    path: str = ".cache/erranza/matches.json"


class FitScoringSettings(BaseModel):
    # Overridable per request: unknown keys must fail instead of being ignored.
    model_config = ConfigDict(extra="forbid")

    weights: dict[Literal["energy", "social", "sensory", "luxury"], float] = Field(
        default_factory=lambda: {"energy": 0.35, "social": 0.25, "sensory": 0.25, "luxury": 0.15}
    )
    sensory_blend: tuple[float, float] = (0.6, 0.4)
    top_n_default: int = Field(3, ge=1)


class AffinityTier(BaseModel):
    min_score: float = Field(..., ge=0, le=100)
    label: str


class TensionThresholds(BaseModel):
    model_config = ConfigDict(extra="forbid")

    energy: float = 25
    social: float = 30
    luxury: float = 30


class DescriptorBands(BaseModel):
    """Score bands used by the template narratives (`< low` / `> high`)."""

    model_config = ConfigDict(extra="forbid")

    low: float = 40
    high: float = 60


class NarrativeTemplateSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    affinity_tiers: list[AffinityTier] = Field(
        default_factory=lambda: [
            AffinityTier(min_score=85, label="Exceptional Match"),
            AffinityTier(min_score=70, label="Strong Match"),
            AffinityTier(min_score=55, label="Good Match"),
        ]
    )
    affinity_fallback_label: str = "Moderate Match"
    tension_thresholds: TensionThresholds = Field(default_factory=TensionThresholds)
    bands: DescriptorBands = Field(default_factory=DescriptorBands)


class GenerativeNarrativeSettings(BaseModel):
    enabled: bool = False
    base_url: str = "https://ai.gateway.lovable.dev/v1"
    model: str = "google/gemini-2.5-flash"
    system_prompt: str = "You are the Erranza SoulPrint Narrator, creating personalized travel narratives."
    prompt_version: str = "v2.1"
    api_key: str | None = None


class NarrativeSettings(BaseModel):
    templates: NarrativeTemplateSettings = Field(default_factory=NarrativeTemplateSettings)
    generative: GenerativeNarrativeSettings = Field(default_factory=GenerativeNarrativeSettings)


class BatchSettings(BaseModel):
    max_workers: int = Field(4, ge=1)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    respondents: RespondentSettings = Field(default_factory=RespondentSettings)
    match_store: MatchStoreSettings = Field(default_factory=MatchStoreSettings)
    scoring: FitScoringSettings = Field(default_factory=FitScoringSettings)
    narrative: NarrativeSettings = Field(default_factory=NarrativeSettings)
    batch: BatchSettings = Field(default_factory=BatchSettings)


def _truthy(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "y"}


# env var -> (settings path, converter). Kept small on purpose: secrets and a few ops knobs.
ENV_OVERRIDES: dict[str, tuple[tuple[str, ...], Callable[[str], Any]]] = {
    "ERRANZA_LOG_LEVEL": (("app", "log_level"), str),
    "ERRANZA_CATALOG_PATH": (("catalog", "path"), str),
    "ERRANZA_NARRATIVE_API_KEY": (("narrative", "generative", "api_key"), str),
    "ERRANZA_NARRATIVE_ENABLED": (("narrative", "generative", "enabled"), _truthy),
}


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay the whitelisted environment variables onto a raw settings payload."""
    load_dotenv_if_present()
    data = dict(data)
    for env_name, (path, convert) in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if not value:
            continue
        node = data
        for key in path[:-1]:
            node[key] = dict(node.get(key) or {})
            node = node[key]
        node[path[-1]] = convert(value)
    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached; call `get_settings.cache_clear()` after env changes)."""
    load_dotenv_if_present()
    raw = _load_config_yaml("defaults.yaml", path=os.getenv("ERRANZA_CONFIG_PATH"))
    return Settings.model_validate(_apply_env_overrides(raw))


@lru_cache
def get_logging_config() -> dict[str, Any]:
    return _load_config_yaml("logging.yaml")
