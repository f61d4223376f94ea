"""Layered configuration for skiptrace.

Values resolve from the first source that defines them:

1. keyword arguments passed to :class:`Settings`;
2. ``SKIPTRACE_*`` environment variables, with ``__`` between section and
   field (``SKIPTRACE_SCORING__CORROBORATION_BOOST=10``);
3. ``.env``, ``.env.<env>`` and ``.env.local`` in the project root;
4. TOML files: ``$SKIPTRACE_SETTINGS_FILE``, then
   ``config/settings.local.toml``, then ``config/settings.default.toml``.

Sections are nested ``BaseSettings`` models, so each also honours its short
unprefixed env names (``SCORING_CORROBORATION_BOOST``) when built on its own.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

ENV_VAR_NAME = "SKIPTRACE_ENV"
DEFAULT_ENV = "local"
SETTINGS_FILE_ENV_VAR = "SKIPTRACE_SETTINGS_FILE"
PROJECT_ROOT = Path(__file__).resolve().parents[3]
PACKAGE_DATA_DIR = Path(__file__).resolve().parents[1] / "normalization" / "data"
CONFIG_DIR = PROJECT_ROOT / "config"
DEFAULT_CONFIG_FILE = CONFIG_DIR / "settings.default.toml"
LOCAL_CONFIG_FILE = CONFIG_DIR / "settings.local.toml"


def _alias(section: str, field: str, short: str) -> AliasChoices:
    """Accept ``SHORT`` and ``SECTION__FIELD`` for a section field."""

    return AliasChoices(short, f"{section}__{field}".upper())


def _active_env(explicit: str | None = None) -> str:
    return (explicit or os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()


def _dotenv_files(env: str) -> tuple[Path, ...]:
    candidates = (PROJECT_ROOT / ".env", PROJECT_ROOT / f".env.{env}", PROJECT_ROOT / ".env.local")
    return tuple(path for path in candidates if path.exists())


def active_config_files() -> tuple[Path, ...]:
    """Return the TOML files that exist, highest precedence first.

    A relative ``$SKIPTRACE_SETTINGS_FILE`` is resolved against the project root.
    """

    ordered: list[Path] = []
    override = os.getenv(SETTINGS_FILE_ENV_VAR)
    if override:
        path = Path(override).expanduser()
        ordered.append(path if path.is_absolute() else (PROJECT_ROOT / path).resolve())
    ordered.extend((LOCAL_CONFIG_FILE, DEFAULT_CONFIG_FILE))
    return tuple(path for path in ordered if path.exists())


class RuntimeSettings(BaseSettings):
    """Process-level runtime controls."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    log_level: str = Field(default="INFO", validation_alias=_alias("runtime", "log_level", "LOG_LEVEL"))


class ExtractionSettings(BaseSettings):
    """Entity caps and free-text capture bounds.

    ``interactive_entity_cap`` bounds the quick path used while a user waits;
    ``comprehensive_entity_cap`` (``None`` = unbounded) applies to batch
    report generation.
    """

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    interactive_entity_cap: int | None = Field(
        default=5, ge=1, validation_alias=_alias("extraction", "interactive_entity_cap", "EXTRACTION_INTERACTIVE_CAP")
    )
    comprehensive_entity_cap: int | None = Field(
        default=None,
        ge=1,
        validation_alias=_alias("extraction", "comprehensive_entity_cap", "EXTRACTION_COMPREHENSIVE_CAP"),
    )
    verification_threshold: int = Field(
        default=75,
        ge=0,
        le=100,
        validation_alias=_alias("extraction", "verification_threshold", "EXTRACTION_VERIFICATION_THRESHOLD"),
    )
    min_capture_length: int = Field(
        default=3, ge=1, validation_alias=_alias("extraction", "min_capture_length", "EXTRACTION_MIN_CAPTURE_LENGTH")
    )
    max_capture_length: int = Field(
        default=99, ge=1, validation_alias=_alias("extraction", "max_capture_length", "EXTRACTION_MAX_CAPTURE_LENGTH")
    )
    max_relationship_length: int = Field(
        default=49,
        ge=1,
        validation_alias=_alias("extraction", "max_relationship_length", "EXTRACTION_MAX_RELATIONSHIP_LENGTH"),
    )


class ScoringSettings(BaseSettings):
    """Corroboration, deduplication, and roll-up tunables."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    corroboration_boost: int = Field(
        default=5, ge=0, validation_alias=_alias("scoring", "corroboration_boost", "SCORING_CORROBORATION_BOOST")
    )
    expected_result_count: int = Field(
        default=10, ge=1, validation_alias=_alias("scoring", "expected_result_count", "SCORING_EXPECTED_RESULT_COUNT")
    )
    high_confidence_threshold: int = Field(
        default=70,
        ge=0,
        le=100,
        validation_alias=_alias("scoring", "high_confidence_threshold", "SCORING_HIGH_CONFIDENCE_THRESHOLD"),
    )
    snippet_similarity_threshold: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        validation_alias=_alias("scoring", "snippet_similarity_threshold", "SCORING_SNIPPET_THRESHOLD"),
    )
    title_similarity_threshold: float = Field(
        default=0.9,
        ge=0.0,
        le=1.0,
        validation_alias=_alias("scoring", "title_similarity_threshold", "SCORING_TITLE_THRESHOLD"),
    )


class ReferenceDataSettings(BaseSettings):
    """Where the geographic tables live; point elsewhere to swap them without code changes."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    data_dir: Path = Field(default=PACKAGE_DATA_DIR, validation_alias=_alias("reference", "data_dir", "REFERENCE_DATA_DIR"))
    area_codes_file: str = Field(
        default="area_codes.json", validation_alias=_alias("reference", "area_codes_file", "REFERENCE_AREA_CODES_FILE")
    )
    states_file: str = Field(
        default="states.json", validation_alias=_alias("reference", "states_file", "REFERENCE_STATES_FILE")
    )
    proximity_file: str = Field(
        default="proximity.json", validation_alias=_alias("reference", "proximity_file", "REFERENCE_PROXIMITY_FILE")
    )


class ObservabilitySettings(BaseSettings):
    """Structured event logging and optional StatsD export."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    structured_logging: bool = Field(
        default=True, validation_alias=_alias("observability", "structured_logging", "OBS_STRUCTURED_LOGGING")
    )
    statsd_host: str | None = Field(
        default=None, validation_alias=_alias("observability", "statsd_host", "OBS_STATSD_HOST")
    )
    statsd_port: int = Field(default=8125, validation_alias=_alias("observability", "statsd_port", "OBS_STATSD_PORT"))
    statsd_prefix: str = Field(
        default="skiptrace", validation_alias=_alias("observability", "statsd_prefix", "OBS_STATSD_PREFIX")
    )
    service_name: str = Field(
        default="skiptrace-core", validation_alias=_alias("observability", "service_name", "OBS_SERVICE_NAME")
    )


class Settings(BaseSettings):
    """Top-level configuration; one nested section per subsystem."""

    model_config = SettingsConfigDict(
        env_prefix="SKIPTRACE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    env: str = Field(default_factory=_active_env)
    project_root: Path = Field(default=PROJECT_ROOT)
    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)
    reference: ReferenceDataSettings = Field(default_factory=ReferenceDataSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    env_files: tuple[Path, ...] = Field(default_factory=tuple, exclude=True)
    config_files: tuple[Path, ...] = Field(default_factory=tuple, exclude=True)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        toml_sources = tuple(TomlConfigSettingsSource(settings_cls, toml_file=path) for path in active_config_files())
        return (init_settings, env_settings, dotenv_settings, *toml_sources, file_secret_settings)

    @model_validator(mode="after")
    def _anchor_data_dir(self) -> "Settings":
        data_dir = self.reference.data_dir
        if not data_dir.is_absolute():
            anchored = self.reference.model_copy(update={"data_dir": (self.project_root / data_dir).resolve()})
            object.__setattr__(self, "reference", anchored)
        return self

    @model_validator(mode="after")
    def _check_capture_bounds(self) -> "Settings":
        if self.extraction.min_capture_length > self.extraction.max_capture_length:
            raise ValueError("extraction.min_capture_length must not exceed extraction.max_capture_length")
        return self

    @property
    def log_level(self) -> str:
        return self.runtime.log_level

    @property
    def area_codes_path(self) -> Path:
        return self.reference.data_dir / self.reference.area_codes_file

    @property
    def states_path(self) -> Path:
        return self.reference.data_dir / self.reference.states_file

    @property
    def proximity_path(self) -> Path:
        return self.reference.data_dir / self.reference.proximity_file


def _load_settings(env: str | None = None) -> Settings:
    resolved = _active_env(env)
    dotenv = _dotenv_files(resolved)
    return Settings(
        _env_file=dotenv or None,
        _env_file_encoding="utf-8",
        env=resolved,
        env_files=dotenv,
        config_files=active_config_files(),
    )


@lru_cache(maxsize=1)
def get_settings(env: str | None = None) -> Settings:
    """Return the cached settings for ``env`` (default: ``$SKIPTRACE_ENV`` or ``local``)."""

    return _load_settings(env)


def reload_settings(env: str | None = None) -> Settings:
    """Drop the cached settings and load them again."""

    get_settings.cache_clear()
    return get_settings(env)


__all__ = [
    "ENV_VAR_NAME",
    "PROJECT_ROOT",
    "Settings",
    "active_config_files",
    "get_settings",
    "reload_settings",
]
