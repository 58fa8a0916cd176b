"""CLI helpers for building cloud options and engine config from global state."""

from __future__ import annotations

from obstinate.config import CloudOptions, ObstinateConfig
from obstinate.location import parse_location


def parse_option_pairs(raw: list[str]) -> list[tuple[str, str]]:
    """Split repeated ``KEY=VALUE`` arguments."""
    pairs: list[tuple[str, str]] = []
    for item in raw:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Expected KEY=VALUE, got '{item}'")
        pairs.append((key.strip(), value))
    return pairs


def options_for(url: str) -> CloudOptions:
    """Provider options for ``url``: environment defaults overridden by ``-o`` flags."""
    from obstinate.cli import state

    location = parse_location(url)
    provider = location.provider
    if provider is None:
        return CloudOptions()
    from_env = CloudOptions.from_env(provider)
    explicit = CloudOptions.from_untyped_config(url, parse_option_pairs(state.options))
    return from_env.merged(explicit)


def config_from_state() -> ObstinateConfig:
    from obstinate.cli import state

    config = ObstinateConfig.from_env()
    if state.cache_dir:
        config.cache_root = state.cache_dir
    return config
