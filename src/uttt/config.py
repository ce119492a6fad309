"""Runtime settings read from ``UTTT_*`` environment variables."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional
import os

from .ai import MAX_LEVEL, MIN_LEVEL
from .game import Rules

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


def _int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3000
    default_level: int = MAX_LEVEL
    lock_decided_boards: bool = True
    # Fixed seed makes every computer reply reproducible
    seed: Optional[int] = None
    log_level: str = "INFO"

    @property
    def rules(self) -> Rules:
        return Rules(lock_decided_boards=self.lock_decided_boards)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        level = _int(env, "UTTT_LEVEL", MAX_LEVEL)
        if not MIN_LEVEL <= level <= MAX_LEVEL:
            raise ValueError(
                f"UTTT_LEVEL must be between {MIN_LEVEL} and {MAX_LEVEL}, got {level}"
            )

        seed_raw = env.get("UTTT_SEED")
        seed = _int(env, "UTTT_SEED", 0) if seed_raw and seed_raw.strip() else None

        return cls(
            host=env.get("UTTT_HOST", "0.0.0.0"),
            port=_int(env, "UTTT_PORT", 3000),
            default_level=level,
            lock_decided_boards=_bool(env, "UTTT_LOCK_DECIDED_BOARDS", True),
            seed=seed,
            log_level=env.get("UTTT_LOG_LEVEL", "INFO").upper(),
        )
