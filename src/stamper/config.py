"""Configuration for the stamper registry service and client."""

import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml

STORAGE_BACKENDS = ("memory", "file")
RATE_LIMITERS = ("fixed", "token", "none")
_FIELD_TYPES = {"port": int, "rate_limit": int, "rate_window": float}


def _split_origins(raw: str) -> list[str]:
    return [o.strip() for o in raw.split(",") if o.strip()] or ["*"]


def _coerce(key: str, value):
    kind = _FIELD_TYPES.get(key, str)
    if key == "cors_origins":
        if isinstance(value, str):
            return _split_origins(value)
        if isinstance(value, (list, tuple)):
            return [str(v).strip() for v in value if str(v).strip()] or ["*"]
        raise ValueError(f"Invalid value for {key}: {value!r}")
    if isinstance(value, (dict, list, tuple, bool)):
        raise ValueError(f"Invalid value for {key}: {value!r}")
    try:
        coerced = kind(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid value for {key}: {value!r}") from e
    if key in ("storage", "rate_limiter"):
        return coerced.strip().lower()
    if key == "log_level":
        return coerced.upper()
    return coerced


@dataclass
class RegistrySettings:
    """Runtime settings, read from ``STAMPER_*`` environment variables."""
    host: str = "0.0.0.0"
    port: int = 3000
    storage: str = "file"
    storage_path: str = "./packages"
    rate_limiter: str = "fixed"
    rate_limit: int = 30
    rate_window: float = 60.0
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    registry_url: str = "http://localhost:3000"

    def __post_init__(self):
        if self.storage not in STORAGE_BACKENDS:
            raise ValueError(f"Unknown storage backend: {self.storage!r}")
        if self.rate_limiter not in RATE_LIMITERS:
            raise ValueError(f"Unknown rate limiter: {self.rate_limiter!r}")
        if self.rate_limit < 1 or self.rate_window <= 0:
            raise ValueError("rate_limit and rate_window must be positive")

    @classmethod
    def from_env(cls) -> "RegistrySettings":
        env = os.environ
        return cls(
            host=env.get("STAMPER_HOST", "0.0.0.0"),
            port=int(env.get("STAMPER_PORT") or env.get("PORT") or "3000"),
            storage=env.get("STAMPER_STORAGE", "file").strip().lower(),
            storage_path=env.get("STAMPER_STORAGE_PATH", "./packages"),
            rate_limiter=env.get("STAMPER_RATE_LIMITER", "fixed").strip().lower(),
            rate_limit=int(env.get("STAMPER_RATE_LIMIT", "30")),
            rate_window=float(env.get("STAMPER_RATE_WINDOW", "60")),
            cors_origins=_split_origins(env.get("STAMPER_CORS_ORIGINS", "*")),
            log_level=env.get("STAMPER_LOG_LEVEL", "INFO").upper(),
            registry_url=env.get("STAMPER_REGISTRY_URL", "http://localhost:3000"),
        )

    @classmethod
    def from_dict(cls, data: dict, base: Optional["RegistrySettings"] = None) -> "RegistrySettings":
        """Overlay ``data`` on ``base`` (or the defaults).

        Values are coerced to the field types, so YAML strings such as
        ``rate_limit: "30"`` are accepted. Unknown keys are ignored.
        """
        merged = asdict(base or cls())
        known = {f.name for f in fields(cls)}
        for key, value in (data or {}).items():
            if key in known and value is not None:
                merged[key] = _coerce(key, value)
        return cls(**merged)

    def to_dict(self) -> dict:
        return asdict(self)


def load_settings(path: Optional[str | Path] = None) -> RegistrySettings:
    """Load settings from the environment, then overlay a YAML file if given."""
    settings = RegistrySettings.from_env()
    if path is None:
        return settings
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    return RegistrySettings.from_dict(data, base=settings)
