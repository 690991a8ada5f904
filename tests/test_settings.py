import asyncio

import pytest

import perceptual_hash.manager as manager
import perceptual_hash.settings as settings_module
from perceptual_hash.errors import ConfigurationError
from perceptual_hash.settings import load_settings


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    for name in settings_module.ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)


def _write(tmp_path, text: str):
    path = tmp_path / "settings.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_repo_settings_file_matches_defaults():
    settings = load_settings()
    config = settings.to_generator_configuration()
    assert (config.resized_size, config.transform_size, config.max_in_flight) == (32, 8, 128)
    assert config.blur_strategy == "max"
    assert settings.backend.assume_srgb is True


def test_yaml_values_are_loaded(tmp_path):
    path = _write(
        tmp_path,
        "generator:\n  resized_size: 64\n  transform_size: 16\n  blur_strategy: min\n"
        "limiter:\n  max_in_flight: 4\n  poll_interval_sec: 0.001\n"
        "backend:\n  worker_threads: 2\n  assume_srgb: false\n",
    )
    settings = load_settings(settings_path=path)
    config = settings.to_generator_configuration()
    assert (config.resized_size, config.transform_size, config.max_in_flight) == (64, 16, 4)
    assert config.blur_strategy == "min"
    assert settings.limiter.poll_interval_sec == 0.001
    assert settings.backend.worker_threads == 2
    assert settings.backend.assume_srgb is False


def test_partial_yaml_uses_defaults(tmp_path):
    settings = load_settings(settings_path=_write(tmp_path, "limiter:\n  max_in_flight: 3\n"))
    assert settings.generator.resized_size == 32
    assert settings.limiter.max_in_flight == 3


def test_env_overrides_yaml(tmp_path, monkeypatch):
    monkeypatch.setenv("PHASH_MAX_IN_FLIGHT", "7")
    monkeypatch.setenv("PHASH_TRANSFORM_SIZE", "not-a-number")
    settings = load_settings(settings_path=_write(tmp_path, "limiter:\n  max_in_flight: 3\n"))
    assert settings.limiter.max_in_flight == 7
    assert settings.generator.transform_size == 8


def test_unknown_keys_rejected(tmp_path):
    with pytest.raises(ConfigurationError):
        load_settings(settings_path=_write(tmp_path, "generator:\n  dct_size: 8\n"))


def test_non_mapping_rejected(tmp_path):
    with pytest.raises(ConfigurationError):
        load_settings(settings_path=_write(tmp_path, "- 1\n- 2\n"))


def test_invalid_sizes_fail_when_building_configuration(tmp_path):
    settings = load_settings(settings_path=_write(tmp_path, "generator:\n  resized_size: 4\n"))
    with pytest.raises(ConfigurationError):
        settings.to_generator_configuration()


def test_missing_explicit_path_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_settings(settings_path=tmp_path / "missing.yaml")


def test_default_generator_is_shared(png_bytes, monkeypatch, tmp_path):
    path = _write(tmp_path, "generator:\n  resized_size: 16\n  transform_size: 4\n")
    monkeypatch.setattr(manager, "get_settings", lambda: load_settings(settings_path=path))
    manager.get_default_generator.cache_clear()
    try:
        generator = manager.get_default_generator()
        assert manager.get_default_generator() is generator
        vec = asyncio.run(manager.perceptual_hash(png_bytes))
        assert vec.bit_count == 16
    finally:
        asyncio.run(manager.get_default_generator().close())
        manager.get_default_generator.cache_clear()
