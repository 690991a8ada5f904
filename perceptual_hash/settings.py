"""
[Intent]
Loads fingerprint settings (hash sizes, admission limits, backend options) from
YAML and validates them into Python objects.

[Usage]
- manager.py builds the shared default generator from get_settings().
- load_settings() can read an explicit YAML path.

[Usage Method]
- Values come from config/fingerprint/settings.yaml under the project root.
- A .env file at the project root is loaded first; PHASH_* environment
  variables override the YAML values.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from perceptual_hash.errors import ConfigurationError
from perceptual_hash.pipeline.contracts import GeneratorConfiguration

logger = logging.getLogger(__name__)

# perceptual_hash/settings.py -> project root
PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_SETTINGS_PATH = PROJECT_ROOT / "config" / "fingerprint" / "settings.yaml"

# environment variable -> (section, key)
ENV_OVERRIDES = {
    "PHASH_RESIZED_SIZE": ("generator", "resized_size"),
    "PHASH_TRANSFORM_SIZE": ("generator", "transform_size"),
    "PHASH_MAX_IN_FLIGHT": ("limiter", "max_in_flight"),
}


class GeneratorSettings(BaseModel):
    """Hash geometry. Range checks live in GeneratorConfiguration."""
    model_config = ConfigDict(extra="forbid")

    resized_size: int = 32
    transform_size: int = 8
    blur_strategy: Literal["max", "min"] = "max"


class LimiterSettings(BaseModel):
    """Admission limits for backend submissions."""
    model_config = ConfigDict(extra="forbid")

    max_in_flight: int = Field(128, ge=1)
    poll_interval_sec: float = Field(0.0, ge=0.0)


class BackendSettings(BaseModel):
    """OpenCV backend options."""
    model_config = ConfigDict(extra="forbid")

    worker_threads: Optional[int] = Field(None, ge=1)
    assume_srgb: bool = True


class FingerprintSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    generator: GeneratorSettings = Field(default_factory=GeneratorSettings)
    limiter: LimiterSettings = Field(default_factory=LimiterSettings)
    backend: BackendSettings = Field(default_factory=BackendSettings)

    def to_generator_configuration(self) -> GeneratorConfiguration:
        return GeneratorConfiguration.from_mapping(
            {
                "resized_size": self.generator.resized_size,
                "transform_size": self.generator.transform_size,
                "max_in_flight": self.limiter.max_in_flight,
                "blur_strategy": self.generator.blur_strategy,
            }
        )


def _apply_env_overrides(payload: Dict[str, Any]) -> Dict[str, Any]:
    """[Purpose] Overlays PHASH_* environment variables; unparsable values are ignored."""
    for env_name, (section, key) in ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is None or not raw.strip():
            continue
        try:
            value = int(raw)
        except ValueError:
            logger.warning("[Settings] ignore %s=%r (not an integer)", env_name, raw)
            continue
        section_payload = payload.get(section) or {}
        section_payload[key] = value
        payload[section] = section_payload
    return payload


def load_settings(*, settings_path: Optional[Path] = None) -> FingerprintSettings:
    """
    [Purpose] Reads the YAML file, applies environment overrides and validates it.

    [Args]
    - settings_path (Optional[Path]): YAML file. When omitted the default path is
      used if it exists, otherwise built-in defaults.

    [Returns]
    - FingerprintSettings
    """
    load_dotenv(dotenv_path=PROJECT_ROOT / ".env")

    path = settings_path or DEFAULT_SETTINGS_PATH
    payload: Any = {}
    if path.exists():
        try:
            payload = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"YAML parse error in {path}: {exc}") from exc
    elif settings_path is not None:
        raise FileNotFoundError(f"fingerprint settings file not found: {path}")

    if not isinstance(payload, dict):
        raise ConfigurationError(f"fingerprint settings must be a mapping: {path}")

    payload = _apply_env_overrides(payload)
    try:
        return FingerprintSettings.model_validate(payload)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid fingerprint settings ({path}): {exc}") from exc


@lru_cache(maxsize=1)
def get_settings() -> FingerprintSettings:
    """Process-wide cached settings (loaded on first call)."""
    return load_settings()


__all__ = [
    "BackendSettings",
    "DEFAULT_SETTINGS_PATH",
    "FingerprintSettings",
    "GeneratorSettings",
    "LimiterSettings",
    "get_settings",
    "load_settings",
]
