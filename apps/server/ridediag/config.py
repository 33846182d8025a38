from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

SERVER_DIR = Path(__file__).resolve().parents[1]
"""Root of the ``apps/server/`` package tree."""

LOGGER = logging.getLogger(__name__)

VALID_LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR")

DEFAULT_CONFIG: dict[str, Any] = {
    "analysis": {
        "window_size_ms": 5000,
        "min_imu_samples": 120,
        "gps_min_hz": 0.2,
        "gps_max_accuracy_p95_m": 25.0,
    },
    "server": {"host": "0.0.0.0", "port": 8000},
    "runtime": {"tick_interval_ms": 500},
    "logging": {"level": "INFO", "debug_log_size": 100},
}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


@dataclass(slots=True)
class AnalysisConfig:
    """Host analysis thresholds the diagnostics rules are measured against."""

    window_size_ms: int
    min_imu_samples: int
    gps_min_hz: float
    gps_max_accuracy_p95_m: float

    def __post_init__(self) -> None:
        _cfg_logger = logging.getLogger(__name__)
        _MINIMUMS: dict[str, float] = {
            "window_size_ms": 100,
            "min_imu_samples": 1,
            "gps_min_hz": 0.01,
            "gps_max_accuracy_p95_m": 1.0,
        }
        for field_name, minimum in _MINIMUMS.items():
            val = getattr(self, field_name)
            if val < minimum:
                _cfg_logger.warning(
                    "analysis.%s=%s is below minimum %s; clamped to %s",
                    field_name,
                    val,
                    minimum,
                    minimum,
                )
                object.__setattr__(self, field_name, type(val)(minimum))

    @property
    def imu_min_hz(self) -> float:
        """Minimum motion rate implied by the required samples per analysis window."""
        return round(self.min_imu_samples / (self.window_size_ms / 1000.0), 1)


@dataclass(slots=True)
class ServerConfig:
    host: str
    port: int

    def __post_init__(self) -> None:
        if not isinstance(self.port, int) or not (1 <= self.port <= 65535):
            raise ValueError(f"ServerConfig.port must be 1-65535, got {self.port!r}")


@dataclass(slots=True)
class RuntimeConfig:
    tick_interval_ms: int

    def __post_init__(self) -> None:
        if not isinstance(self.tick_interval_ms, int) or self.tick_interval_ms < 50:
            LOGGER.warning(
                "runtime.tick_interval_ms=%s is below minimum 50; clamped to 50",
                self.tick_interval_ms,
            )
            object.__setattr__(self, "tick_interval_ms", 50)


@dataclass(slots=True)
class LoggingConfig:
    level: str
    debug_log_size: int

    def __post_init__(self) -> None:
        level = str(self.level).upper()
        if level not in VALID_LOG_LEVELS:
            LOGGER.warning("logging.level=%r is not recognised; using INFO", self.level)
            level = "INFO"
        object.__setattr__(self, "level", level)
        if not isinstance(self.debug_log_size, int) or self.debug_log_size < 1:
            object.__setattr__(self, "debug_log_size", max(1, int(self.debug_log_size or 1)))


@dataclass(slots=True)
class AppConfig:
    analysis: AnalysisConfig
    server: ServerConfig
    runtime: RuntimeConfig
    logging: LoggingConfig
    config_path: Path


def default_analysis_config() -> AnalysisConfig:
    section = DEFAULT_CONFIG["analysis"]
    return AnalysisConfig(
        window_size_ms=int(section["window_size_ms"]),
        min_imu_samples=int(section["min_imu_samples"]),
        gps_min_hz=float(section["gps_min_hz"]),
        gps_max_accuracy_p95_m=float(section["gps_max_accuracy_p95_m"]),
    )


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path} must contain a YAML object at the top level.")
        return data


def load_config(config_path: Path | None = None) -> AppConfig:
    path = config_path or (SERVER_DIR / "config.yaml")
    path = path.resolve()
    override = _read_config_file(path)
    merged = _deep_merge(deepcopy(DEFAULT_CONFIG), override)

    analysis_cfg = merged["analysis"]
    server_port = int(merged["server"]["port"])
    if not 1 <= server_port <= 65535:
        raise ValueError(f"server.port must be 1-65535, got {server_port}")

    app_config = AppConfig(
        analysis=AnalysisConfig(
            window_size_ms=int(analysis_cfg["window_size_ms"]),
            min_imu_samples=int(analysis_cfg["min_imu_samples"]),
            gps_min_hz=float(analysis_cfg["gps_min_hz"]),
            gps_max_accuracy_p95_m=float(analysis_cfg["gps_max_accuracy_p95_m"]),
        ),
        server=ServerConfig(
            host=str(merged["server"]["host"]),
            port=server_port,
        ),
        runtime=RuntimeConfig(
            tick_interval_ms=int(merged["runtime"]["tick_interval_ms"]),
        ),
        logging=LoggingConfig(
            level=str(merged["logging"].get("level", "INFO")),
            debug_log_size=int(merged["logging"].get("debug_log_size", 100)),
        ),
        config_path=path,
    )
    LOGGER.info(
        "Loaded config=%s gps_min_hz=%s imu_min_hz=%s",
        app_config.config_path,
        app_config.analysis.gps_min_hz,
        app_config.analysis.imu_min_hz,
    )
    return app_config
