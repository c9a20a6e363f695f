"""
Process configuration, read from the environment.

Every setting has a default, so an empty environment gives a working
server on port 8080 with no game archiving.
"""

import os
from dataclasses import dataclass, field

from snakesolver.solver import SolveOptions

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    pass


def _env_str(env: dict, name: str, default: str) -> str:
    return env.get(name, default)


def _env_int(env: dict, name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name}: expected an integer, got {raw!r}") from None


def _env_float(env: dict, name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name}: expected a number of seconds, got {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"{name}: must be positive, got {raw!r}")
    return value


def _env_bool(env: dict, name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    if raw.lower() in _TRUE:
        return True
    if raw.lower() in _FALSE:
        return False
    raise ConfigError(f"{name}: expected a boolean, got {raw!r}")


@dataclass
class Config:
    host: str = "0.0.0.0"
    port: int = 8080
    output_path: str = ""
    max_age: float = 120.0
    prune_interval: float = 60.0
    log_level: str = "INFO"
    solve: SolveOptions = field(default_factory=SolveOptions)

    @classmethod
    def from_env(cls, env: dict | None = None) -> "Config":
        env = os.environ if env is None else env
        defaults = SolveOptions()
        port = _env_int(env, "BATTLESNAKE_PORT", 8080)
        if not 0 <= port <= 65535:
            raise ConfigError(f"BATTLESNAKE_PORT: out of range, got {port}")
        log_level = _env_str(env, "LOG_LEVEL", "INFO").upper()
        if log_level not in LOG_LEVELS:
            raise ConfigError(f"LOG_LEVEL: expected one of {', '.join(LOG_LEVELS)}, got {log_level!r}")
        return cls(
            host=_env_str(env, "BATTLESNAKE_HOST", "0.0.0.0"),
            port=port,
            output_path=_env_str(env, "RECORDER_OUTPUT_PATH", ""),
            max_age=_env_float(env, "RECORDER_MAX_AGE", 120.0),
            prune_interval=_env_float(env, "RECORDER_PRUNE_INTERVAL", 60.0),
            log_level=log_level,
            solve=SolveOptions(
                lookahead=_env_bool(env, "SOLVER_LOOKAHEAD", defaults.lookahead),
                consider_opponent_next_move=_env_bool(
                    env, "SOLVER_OPPONENT_NEXT_MOVE", defaults.consider_opponent_next_move),
                use_single_best_option=_env_bool(
                    env, "SOLVER_SINGLE_BEST", defaults.use_single_best_option),
                food_reward=_env_int(env, "SOLVER_FOOD_REWARD", defaults.food_reward),
                hazard_penalty=_env_int(env, "SOLVER_HAZARD_PENALTY", defaults.hazard_penalty),
            ),
        )
