"""Runtime configuration: Streamlit secrets first, environment second."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Any

import streamlit as st

DEFAULT_TIMEOUT = 10.0
DEFAULT_CACHE_TTL = 60


@dataclass(frozen=True)
class StoreSettings:
    url: str
    key: str
    timeout: float = DEFAULT_TIMEOUT

    @property
    def configured(self) -> bool:
        return bool(self.url and self.key)


def get_secret(key: str, default=None):
    try:
        return st.secrets[key]
    except Exception:
        # st.secrets raises its own error type when no secrets.toml exists
        return default


def secret_lookup(container, key: str, default=None):
    if isinstance(container, dict):
        return container.get(key, default)
    try:
        return container[key]
    except (KeyError, TypeError):
        return default


def _as_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def load_store_settings() -> StoreSettings:
    section = get_secret("supabase", {})
    url = (
        secret_lookup(section, "url")
        or get_secret("SUPABASE_URL")
        or os.getenv("SUPABASE_URL")
        or ""
    )
    key = (
        secret_lookup(section, "key")
        or get_secret("SUPABASE_ANON_KEY")
        or os.getenv("SUPABASE_ANON_KEY")
        or os.getenv("SUPABASE_KEY")
        or ""
    )
    timeout = _as_float(
        secret_lookup(section, "timeout") or os.getenv("SUPABASE_TIMEOUT"),
        DEFAULT_TIMEOUT,
    )
    return StoreSettings(url=str(url).rstrip("/"), key=str(key), timeout=timeout)


def cache_ttl() -> int:
    raw = get_secret("GANADO_CACHE_TTL") or os.getenv("GANADO_CACHE_TTL")
    return int(_as_float(raw, DEFAULT_CACHE_TTL))


__all__ = ["StoreSettings", "get_secret", "secret_lookup", "load_store_settings", "cache_ttl"]
