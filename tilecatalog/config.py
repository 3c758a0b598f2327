"""
Catalog load configuration.

Values come from keyword arguments, the TILECATALOG_* environment variables,
or command line flags (which override the environment).
"""

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

ENV_EXTENSION_TOLERANT = "TILECATALOG_EXTENSION_TOLERANT"
ENV_WORKERS = "TILECATALOG_WORKERS"
ENV_STRICT = "TILECATALOG_STRICT"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class CatalogConfig:
    """
    Options for one catalog load.

    Attributes:
        extension_tolerant: Keep properties that are not part of a kind's
            schema instead of dropping them
        workers: Number of threads merging tiles (1 = sequential)
        strict: Treat any excluded tile as a failed load (CLI exit status)
    """
    extension_tolerant: bool = False
    workers: int = 1
    strict: bool = False

    def __post_init__(self):
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CatalogConfig":
        """Read configuration from TILECATALOG_* environment variables."""
        env = os.environ if environ is None else environ
        workers_raw = env.get(ENV_WORKERS, "").strip()
        try:
            workers = int(workers_raw) if workers_raw else 1
        except ValueError:
            raise ValueError(f"{ENV_WORKERS} must be an integer, got {workers_raw!r}") from None
        return cls(
            extension_tolerant=_env_flag(env, ENV_EXTENSION_TOLERANT),
            workers=workers,
            strict=_env_flag(env, ENV_STRICT),
        )

    def with_overrides(self, **overrides) -> "CatalogConfig":
        """Copy with the given options replaced; None values are ignored."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)


def _env_flag(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "").strip().lower() in _TRUTHY
