# minimax_chess/config.py
from dataclasses import dataclass, field
from typing import Optional
import logging
import os
import tomllib

logger = logging.getLogger(__name__)

@dataclass
class SearchConfig:
    depth: int = 3
    min_depth: int = 1  # bounds for depths requested by a player
    max_depth: int = 5
    alpha_beta: bool = True  # False runs plain minimax (same result, more nodes)

@dataclass
class EvalConfig:
    mobility_weight: int = 5  # centipawns per legal move of the side to move
    use_positional: bool = True

@dataclass
class GameConfig:
    player_color: str = "w"  # human side; the computer takes the other

@dataclass
class UIConfig:
    engine_name: str = "MinimaxChess"
    api_port: int = 8000

@dataclass
class Config:
    search: SearchConfig = field(default_factory=SearchConfig)
    eval: EvalConfig = field(default_factory=EvalConfig)
    game: GameConfig = field(default_factory=GameConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    log_level: str = "INFO"

    @staticmethod
    def load_from_toml(path: str = "config.toml") -> "Config":
        cfg = Config()
        if not os.path.exists(path):
            return cfg
        with open(path, "rb") as f:
            raw = tomllib.load(f)
        for section in ("search", "eval", "game", "ui"):
            target = getattr(cfg, section)
            for k, v in raw.get(section, {}).items():
                if hasattr(target, k):
                    setattr(target, k, v)
                else:
                    logger.warning("Unknown config key [%s].%s in %s", section, k, path)
        if "log_level" in raw:
            cfg.log_level = str(raw["log_level"])
        return cfg


def configure_logging(level: Optional[str] = None):
    """Set up root logging once for an entry point (API, CLI)."""
    logging.basicConfig(
        level=(level or CONFIG.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def apply_env_overrides(cfg: Config) -> Config:
    """Apply MINIMAX_CHESS_SEARCH_DEPTH and keep the depth inside its bounds."""
    # allow env override of depth for quick debugging
    override_depth = os.environ.get("MINIMAX_CHESS_SEARCH_DEPTH")
    if override_depth:
        try:
            cfg.search.depth = int(override_depth)
        except ValueError:
            logger.warning("Ignoring non-integer MINIMAX_CHESS_SEARCH_DEPTH=%r", override_depth)
    lo, hi = cfg.search.min_depth, cfg.search.max_depth
    if not lo <= cfg.search.depth <= hi:
        clamped = min(max(cfg.search.depth, lo), hi)
        logger.warning("Search depth %d outside [%d, %d], using %d", cfg.search.depth, lo, hi, clamped)
        cfg.search.depth = clamped
    return cfg


# single globally importable config instance
CONFIG = apply_env_overrides(
    Config.load_from_toml(os.environ.get("MINIMAX_CHESS_CONFIG_TOML", "config.toml")))
