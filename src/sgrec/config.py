"""
Engine configuration.

Settings live in ``configs/config.yaml`` and may be overridden by environment
variables (a local ``.env`` file is honoured through python-dotenv).
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from loguru import logger

from sgrec.errors import InvalidConfigError

DEFAULT_CONFIG_PATH = Path("configs/config.yaml")


@dataclass
class SimilarityConfig:
    """Composite similarity weights and graph thresholds."""

    threshold: float = 0.1
    track_weight: float = 0.5
    genre_weight: float = 0.3
    artist_weight: float = 0.2
    neighbor_limit: int = 10
    rebuild_budget_seconds: Optional[float] = None

    def validate(self):
        if not 0.0 <= self.threshold < 1.0:
            raise InvalidConfigError(f"similarity.threshold must be in [0, 1), got {self.threshold}")
        for name in ("track_weight", "genre_weight", "artist_weight"):
            if getattr(self, name) < 0:
                raise InvalidConfigError(f"similarity.{name} must be non-negative")
        if self.neighbor_limit <= 0:
            raise InvalidConfigError("similarity.neighbor_limit must be positive")
        if self.rebuild_budget_seconds is not None and self.rebuild_budget_seconds <= 0:
            raise InvalidConfigError("similarity.rebuild_budget_seconds must be positive")


def _check_shares(section: str, shares: Dict[str, float]):
    for name, share in shares.items():
        if not 0.0 <= share <= 1.0:
            raise InvalidConfigError(f"{section}.{name} must be in [0, 1], got {share}")
    if sum(shares.values()) > 1.0 + 1e-9:
        raise InvalidConfigError(f"{section} shares must not sum above 1.0")


@dataclass
class WeeklyMix:
    """Share of the weekly discovery list drawn from each strategy."""

    collaborative: float = 0.6
    content: float = 0.3
    popularity: float = 0.1

    def validate(self):
        _check_shares("weekly_mix", self.__dict__)


@dataclass
class RadioMix:
    """Share of a seeded radio drawn from each stage; popularity fills the rest."""

    same_artist: float = 0.2
    same_genre: float = 0.4
    collaborative: float = 0.3

    def validate(self):
        _check_shares("radio_mix", self.__dict__)


@dataclass
class EngineConfig:
    """Top-level configuration for the recommendation engine."""

    similarity: SimilarityConfig = field(default_factory=SimilarityConfig)
    weekly_mix: WeeklyMix = field(default_factory=WeeklyMix)
    radio_mix: RadioMix = field(default_factory=RadioMix)
    cache_ttl_seconds: float = 30 * 60
    default_limit: int = 20
    similar_listener_limit: int = 15
    shuffle_seed: Optional[int] = None

    def validate(self) -> "EngineConfig":
        self.similarity.validate()
        self.weekly_mix.validate()
        self.radio_mix.validate()
        if self.cache_ttl_seconds <= 0:
            raise InvalidConfigError("cache.ttl_seconds must be positive")
        if self.default_limit <= 0:
            raise InvalidConfigError("engine.default_limit must be positive")
        if self.similar_listener_limit <= 0:
            raise InvalidConfigError("engine.similar_listener_limit must be positive")
        return self

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any]) -> "EngineConfig":
        """
        Build a config from the parsed YAML layout.

        Args:
            cfg: Mapping with optional ``similarity``, ``engine`` and ``cache`` sections
        """
        cfg = cfg or {}
        engine = cfg.get("engine") or {}
        cache = cfg.get("cache") or {}
        try:
            config = cls(
                similarity=SimilarityConfig(**(cfg.get("similarity") or {})),
                weekly_mix=WeeklyMix(**(engine.get("weekly_mix") or {})),
                radio_mix=RadioMix(**(engine.get("radio_mix") or {})),
                cache_ttl_seconds=float(cache.get("ttl_seconds", 30 * 60)),
                default_limit=int(engine.get("default_limit", 20)),
                similar_listener_limit=int(engine.get("similar_listener_limit", 15)),
                shuffle_seed=engine.get("shuffle_seed"),
            )
            return config.validate()
        except InvalidConfigError:
            raise
        except (TypeError, ValueError) as e:
            raise InvalidConfigError(f"Malformed configuration: {e}") from e


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay SGREC_* environment variables onto the YAML mapping."""
    ttl = os.getenv("SGREC_CACHE_TTL")
    if ttl:
        cfg.setdefault("cache", {})["ttl_seconds"] = float(ttl)

    seed = os.getenv("SGREC_SHUFFLE_SEED")
    if seed:
        cfg.setdefault("engine", {})["shuffle_seed"] = int(seed)

    threshold = os.getenv("SGREC_SIMILARITY_THRESHOLD")
    if threshold:
        cfg.setdefault("similarity", {})["threshold"] = float(threshold)
    return cfg


def load_config(path: Optional[str | Path] = None) -> EngineConfig:
    """
    Load the engine configuration.

    Args:
        path: YAML file to read. Defaults to ``$SGREC_CONFIG`` or
            ``configs/config.yaml``; a missing default file yields the defaults.

    Returns:
        A validated EngineConfig
    """
    load_dotenv()

    explicit = path is not None or os.getenv("SGREC_CONFIG") is not None
    config_path = Path(path or os.getenv("SGREC_CONFIG") or DEFAULT_CONFIG_PATH)

    cfg: Dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            try:
                cfg = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise InvalidConfigError(f"Could not parse {config_path}: {e}") from e
        logger.debug(f"Loaded configuration from {config_path}")
    elif explicit:
        raise InvalidConfigError(f"Config file not found: {config_path}")
    else:
        logger.debug(f"No config at {config_path}, using defaults")

    if not isinstance(cfg, dict):
        raise InvalidConfigError(f"{config_path} must contain a mapping")

    try:
        cfg = _apply_env_overrides(cfg)
    except ValueError as e:
        raise InvalidConfigError(f"Malformed SGREC_* environment override: {e}") from e
    return EngineConfig.from_dict(cfg)
