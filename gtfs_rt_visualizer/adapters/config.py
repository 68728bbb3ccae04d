from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from gtfs_rt_visualizer.app.services.source_registry import SourceRegistry
from gtfs_rt_visualizer.domain.exceptions import ConfigError
from gtfs_rt_visualizer.domain.models.source import Source

DEFAULT_AGENCY = "Agency"
DEFAULT_REFRESH_S = 15
DEFAULT_MIN_REFRESH_S = 10
DEFAULT_HTTP_PORT = 8080
DEFAULT_HOST = "0.0.0.0"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def validate_url(raw: str | None) -> str:
    url = (raw or "").strip()
    if not url:
        raise ConfigError("Missing feed url")
    try:
        scheme = httpx.URL(url).scheme
    except httpx.InvalidURL as exc:
        raise ConfigError(f"Invalid feed url {url!r}: {exc}") from exc
    if scheme not in {"http", "https"}:
        raise ConfigError(f"Feed url must be http(s): {url!r}")
    return url


@dataclass(frozen=True, slots=True)
class SourceConfig:
    url: str
    agency: str = DEFAULT_AGENCY
    refresh_rate: int | None = None
    hue: float | None = None


@dataclass(frozen=True, slots=True)
class VisualizerConfig:
    sources: tuple[SourceConfig, ...] = field(default_factory=tuple)
    refresh_rate: int = DEFAULT_REFRESH_S
    min_refresh: int = DEFAULT_MIN_REFRESH_S
    dynamic_refresh: bool = True
    http_port: int = DEFAULT_HTTP_PORT
    host: str = DEFAULT_HOST

    @staticmethod
    def from_env() -> "VisualizerConfig":
        """Globals from RTVIS_* env vars; sources come from the CLI or a file."""

        return VisualizerConfig(
            refresh_rate=_env_int("RTVIS_REFRESH", DEFAULT_REFRESH_S),
            min_refresh=_env_int("RTVIS_MIN_REFRESH", DEFAULT_MIN_REFRESH_S),
            dynamic_refresh=_env_bool("RTVIS_DYNAMIC_REFRESH", True),
            http_port=_env_int("RTVIS_HTTP_PORT", DEFAULT_HTTP_PORT),
            host=os.getenv("RTVIS_HOST") or DEFAULT_HOST,
        )

    def validate(self) -> "VisualizerConfig":
        if not self.sources:
            raise ConfigError("No GTFS-realtime sources configured")
        if self.min_refresh < 0:
            raise ConfigError("minRefresh must be >= 0")
        if self.refresh_rate <= 0:
            raise ConfigError("refresh must be > 0")
        if not (0 < self.http_port < 65536):
            raise ConfigError(f"Invalid port: {self.http_port}")
        for src in self.sources:
            validate_url(src.url)
            if src.refresh_rate is not None and src.refresh_rate <= 0:
                raise ConfigError(f"refreshRate must be > 0 for {src.url}")
        return self


class SourceConfigSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    url: str
    agency: str = DEFAULT_AGENCY
    refresh_rate: int | None = Field(default=None, alias="refreshRate")
    hue: float | None = None


class ConfigFileSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    sources: list[SourceConfigSchema]
    refresh_rate: int | None = Field(default=None, alias="refreshRate")
    min_refresh: int | None = Field(default=None, alias="minRefresh")
    dynamic_refresh: bool | None = Field(default=None, alias="dynamicRefresh")
    port: int | None = None
    host: str | None = None


def load_config_file(path: str | Path, *, base: VisualizerConfig) -> VisualizerConfig:
    """Read a JSON config file on top of ``base``.

    Keys follow the camelCase names: sources[{agency, url, refreshRate, hue}],
    refreshRate, minRefresh, dynamicRefresh, port, host.
    """

    try:
        raw: Any = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file {path} is not valid JSON: {exc}") from exc

    try:
        parsed = ConfigFileSchema.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config file {path}: {exc}") from exc

    sources = tuple(
        SourceConfig(
            url=validate_url(s.url),
            agency=s.agency or DEFAULT_AGENCY,
            refresh_rate=s.refresh_rate,
            hue=s.hue,
        )
        for s in parsed.sources
    )

    cfg = replace(base, sources=sources)
    if parsed.refresh_rate is not None:
        cfg = replace(cfg, refresh_rate=parsed.refresh_rate)
    if parsed.min_refresh is not None:
        cfg = replace(cfg, min_refresh=parsed.min_refresh)
    if parsed.dynamic_refresh is not None:
        cfg = replace(cfg, dynamic_refresh=parsed.dynamic_refresh)
    if parsed.port is not None:
        cfg = replace(cfg, http_port=parsed.port)
    if parsed.host:
        cfg = replace(cfg, host=parsed.host)
    return cfg


def load_url_list(path: str | Path) -> tuple[SourceConfig, ...]:
    """One feed URL per line; blank lines and '#' comments are ignored."""

    try:
        lines = Path(path).read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise ConfigError(f"Cannot read url list {path}: {exc}") from exc

    sources: list[SourceConfig] = []
    for line in lines:
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        sources.append(SourceConfig(url=validate_url(line)))
    return tuple(sources)


def build_registry(cfg: VisualizerConfig) -> SourceRegistry:
    registry = SourceRegistry()
    for src in cfg.sources:
        registry.add(
            Source(
                agency=src.agency,
                url=src.url,
                refresh_interval=(
                    src.refresh_rate if src.refresh_rate is not None else cfg.refresh_rate
                ),
                min_interval=cfg.min_refresh,
                hue=src.hue,
            )
        )
    return registry
