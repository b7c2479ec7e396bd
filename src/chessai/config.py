"""Runtime settings for the engine and its HTTP server."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Mapping, Optional


ENV_PREFIX = "CHESSAI_"


@dataclass(frozen=True)
class EngineConfig:
    """Engine and server settings.

    Every field can be overridden by an environment variable named after it,
    e.g. ``CHESSAI_SEARCH_DEPTH=2``.
    """

    search_depth: int = 3
    """Depth used when a request does not name one"""

    max_search_depth: int = 5
    """Largest depth the HTTP API accepts"""

    use_test_setup: bool = False
    """Start new games from the reduced pawns/rooks/kings layout"""

    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Build a config from ``CHESSAI_*`` variables.

        Raises:
            ValueError: If a variable cannot be converted to the field type or
                the depths are inconsistent.
        """
        env = os.environ if environ is None else environ
        values = {}
        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            default = getattr(cls, f.name)
            if isinstance(default, bool):
                lowered = raw.strip().lower()
                if lowered not in ("1", "0", "true", "false", "yes", "no"):
                    raise ValueError(f"{ENV_PREFIX}{f.name.upper()} must be a boolean")
                values[f.name] = lowered in ("1", "true", "yes")
            elif isinstance(default, int):
                try:
                    values[f.name] = int(raw)
                except ValueError as e:
                    raise ValueError(f"{ENV_PREFIX}{f.name.upper()} must be an integer") from e
            else:
                values[f.name] = raw
        config = cls(**values)
        if not 1 <= config.search_depth <= config.max_search_depth:
            raise ValueError("search_depth must be between 1 and max_search_depth")
        return config
