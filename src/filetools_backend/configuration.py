from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from omegaconf import DictConfig, OmegaConf
from pydantic import BaseModel

load_dotenv()

_HERE = Path(__file__).resolve()
_CANDIDATE_CONFIG_PATHS = [parent / "config/config.yaml" for parent in _HERE.parents[:4]]

if os.getenv("FILETOOLS_CONFIG"):
    _CANDIDATE_CONFIG_PATHS.insert(0, Path(os.environ["FILETOOLS_CONFIG"]))

CONFIG_PATH = next((path for path in _CANDIDATE_CONFIG_PATHS if path.exists()), None)
if CONFIG_PATH is None:  # pragma: no cover - fail fast in misconfigured environments
    raise FileNotFoundError("config.yaml could not be located; set FILETOOLS_CONFIG or reinstall the package.")


class StorageSettings(BaseModel):
    upload_dir: Path
    output_dir: Path


class LimitSettings(BaseModel):
    max_files: int = 10
    max_file_size_mb: int = 50

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024


class LifecycleSettings(BaseModel):
    retention_seconds: float = 3600
    sweep_interval_seconds: float = 60


class LocalizationSettings(BaseModel):
    default_language: str = "en"


class BinarySettings(BaseModel):
    ffmpeg: str = "ffmpeg"
    soffice: str = "soffice"
    tesseract: Optional[str] = None


class AISettings(BaseModel):
    base_url: str
    api_key: Optional[str] = None
    model: str
    timeout_seconds: float = 60


class ServerSettings(BaseModel):
    cors_origins: List[str]
    rate_limit_per_minute: int = 120


class LoggingSettings(BaseModel):
    level: str = "INFO"


class Settings(BaseModel):
    storage: StorageSettings
    limits: LimitSettings
    lifecycle: LifecycleSettings
    localization: LocalizationSettings
    binaries: BinarySettings
    ai: AISettings
    server: ServerSettings
    logging: LoggingSettings


@lru_cache(maxsize=1)
def _load_default_config() -> DictConfig:
    if not CONFIG_PATH.exists():
        raise FileNotFoundError(f"Default config not found at {CONFIG_PATH}")
    return OmegaConf.load(CONFIG_PATH)


def get_default_config_container(resolve: bool = False) -> Dict[str, Any]:
    config = _load_default_config()
    return OmegaConf.to_container(config, resolve=resolve, enum_to_str=True)  # type: ignore[return-value]


def make_runtime_config(overrides: Optional[Dict[str, Any]] = None) -> DictConfig:
    """
    Merge caller overrides onto the packaged defaults.

    Environment variables are read when the merged config is resolved, so
    the same defaults serve every deployment. The base is put in struct
    mode first: an override naming a key the defaults do not declare is a
    typo, and OmegaConf raises instead of silently ignoring it.

    Args:
        overrides: Nested mapping mirroring config.yaml, e.g.
            ``{"lifecycle": {"retention_seconds": 60}}``

    Returns:
        Unresolved DictConfig with overrides applied

    Raises:
        omegaconf.errors.ConfigKeyError: If an override key is unknown
    """
    base_container = OmegaConf.to_container(_load_default_config(), resolve=False)
    base = OmegaConf.create(base_container)
    OmegaConf.set_struct(base, True)

    override_config = OmegaConf.create(overrides or {})
    merged = DictConfig(OmegaConf.merge(base, override_config))
    return merged


def load_settings(overrides: Optional[Dict[str, Any]] = None) -> Settings:
    config = make_runtime_config(overrides)
    container = OmegaConf.to_container(config, resolve=True)
    return Settings.model_validate(container)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.logging.level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
