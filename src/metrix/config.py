"""Runtime configuration helpers for the collector and the agent."""

from __future__ import annotations
from functools import lru_cache
from typing import Literal
from dynaconf import Dynaconf


StorageBackend = Literal["memory", "file", "postgres"]
"""Storage backends the collector can be configured with."""

_DEFAULTS: dict[str, object] = {
    "ADDRESS": "localhost:8080",
    "STORE_INTERVAL": 300,
    "FILE_STORAGE_PATH": "/tmp/metrics-db.json",
    "RESTORE": True,
    "DATABASE_DSN": None,
    "POLL_INTERVAL": 2,
    "REPORT_INTERVAL": 10,
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _build_loader() -> Dynaconf:
    """Create a Dynaconf loader wired to environment variables only."""
    return Dynaconf(
        envvar_prefix="METRIX",
        settings_files=[],
        load_dotenv=True,
        environments=False,
    )


def _coerce_int(source: Dynaconf, key: str, *, minimum: int) -> int:
    raw = source.get(key, _DEFAULTS[key])
    if raw is None or raw == "":
        raw = _DEFAULTS[key]
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"METRIX_{key} must be an integer.") from exc
    if value < minimum:
        raise ValueError(f"METRIX_{key} must be at least {minimum}.")
    return value


def _coerce_bool(source: Dynaconf, key: str) -> bool:
    raw = source.get(key, _DEFAULTS[key])
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"METRIX_{key} must be a boolean.")


def parse_address(address: str) -> tuple[str, int]:
    """Split a ``host:port`` address into its parts."""
    host, sep, port_text = address.rpartition(":")
    if not sep or not port_text.isdigit():
        msg = f"Address must look like host:port, got {address!r}."
        raise ValueError(msg)
    port = int(port_text)
    if not 0 < port < 65536:
        raise ValueError(f"Port out of range in address {address!r}.")
    return host or "0.0.0.0", port


def _normalize_settings(source: Dynaconf) -> Dynaconf:
    """Validate and fill defaults on the raw Dynaconf settings."""
    normalized = Dynaconf(
        envvar_prefix="METRIX",
        settings_files=[],
        load_dotenv=False,
        environments=False,
    )

    address = str(source.get("ADDRESS") or _DEFAULTS["ADDRESS"])
    parse_address(address)
    normalized.set("ADDRESS", address)

    normalized.set("STORE_INTERVAL", _coerce_int(source, "STORE_INTERVAL", minimum=0))
    normalized.set("POLL_INTERVAL", _coerce_int(source, "POLL_INTERVAL", minimum=1))
    normalized.set(
        "REPORT_INTERVAL", _coerce_int(source, "REPORT_INTERVAL", minimum=1)
    )
    normalized.set("RESTORE", _coerce_bool(source, "RESTORE"))

    file_path = source.get("FILE_STORAGE_PATH", _DEFAULTS["FILE_STORAGE_PATH"])
    normalized.set("FILE_STORAGE_PATH", str(file_path) if file_path else None)

    dsn = source.get("DATABASE_DSN")
    normalized.set("DATABASE_DSN", str(dsn) if dsn else None)

    backend: StorageBackend
    if normalized.DATABASE_DSN:
        backend = "postgres"
    elif normalized.FILE_STORAGE_PATH:
        backend = "file"
    else:
        backend = "memory"
    normalized.set("STORAGE_BACKEND", backend)

    return normalized


@lru_cache(maxsize=1)
def _load_settings() -> Dynaconf:
    """Load settings once and cache the normalized Dynaconf instance."""
    return _normalize_settings(_build_loader())


def get_settings(*, refresh: bool = False) -> Dynaconf:
    """Return the cached Dynaconf settings, reloading them if requested."""
    if refresh:
        _load_settings.cache_clear()
    return _load_settings()


def resolve_settings(**overrides: object) -> Dynaconf:
    """Return settings with command line overrides applied on top of the env.

    Overrides whose value is ``None`` are ignored so unset CLI options fall
    back to the environment and then to the defaults.
    """
    source = _build_loader()
    for key, value in overrides.items():
        if value is not None:
            source.set(key.upper(), value)
    return _normalize_settings(source)


__all__ = [
    "StorageBackend",
    "get_settings",
    "parse_address",
    "resolve_settings",
]
