"""Read-only client for the hosted Supabase tables (PostgREST over HTTP)."""

from __future__ import annotations

from typing import Any, Mapping

import requests

from core.activity import append_log
from core.settings import DEFAULT_TIMEOUT, StoreSettings

REGISTROS_TABLE = "registros"
SALIDAS_TABLE = "salidas_detalle"


class StoreError(RuntimeError):
    """Any failure reading from the external store."""

    def __init__(self, table: str, message: str):
        self.table = table
        super().__init__(f"{table}: {message}")


def _render_filters(op: str, filters: Mapping[str, Any] | None) -> list[tuple[str, str]]:
    if not filters:
        return []
    return [(str(column), f"{op}.{value}") for column, value in filters.items()]


class SupabaseStore:
    """Minimal PostgREST query client.

    Only the primitives the reports need: equality filters, ``<=`` filters
    and ordering by one column.
    """

    def __init__(
        self,
        url: str,
        key: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ):
        self.base_url = f"{url.rstrip('/')}/rest/v1"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Accept": "application/json",
        }

    def build_params(
        self,
        *,
        columns: str = "*",
        eq: Mapping[str, Any] | None = None,
        lte: Mapping[str, Any] | None = None,
        order: str | None = None,
        descending: bool = False,
    ) -> list[tuple[str, str]]:
        params = [("select", columns)]
        params.extend(_render_filters("eq", eq))
        params.extend(_render_filters("lte", lte))
        if order:
            params.append(("order", f"{order}.{'desc' if descending else 'asc'}"))
        return params

    def select(
        self,
        table: str,
        *,
        columns: str = "*",
        eq: Mapping[str, Any] | None = None,
        lte: Mapping[str, Any] | None = None,
        order: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        params = self.build_params(
            columns=columns, eq=eq, lte=lte, order=order, descending=descending
        )
        url = f"{self.base_url}/{table}"
        try:
            response = self.session.get(url, headers=self.headers, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            append_log(f"GET {table} falló: {exc}", level="ERROR", scope="store")
            raise StoreError(table, f"sin conexión ({exc})") from exc

        if response.status_code >= 400:
            append_log(
                f"GET {table} devolvió {response.status_code}: {response.text[:120]}",
                level="ERROR",
                scope="store",
            )
            raise StoreError(table, f"{response.status_code} – {response.text[:120]}")

        try:
            data = response.json()
        except ValueError as exc:
            raise StoreError(table, f"respuesta JSON inválida: {exc}") from exc

        if not isinstance(data, list):
            raise StoreError(table, "se esperaba una lista de filas")
        return data


def store_from_settings(settings: StoreSettings) -> SupabaseStore:
    if not settings.configured:
        raise StoreError("config", "faltan SUPABASE_URL / SUPABASE_ANON_KEY")
    return SupabaseStore(settings.url, settings.key, timeout=settings.timeout)


__all__ = ["StoreError", "SupabaseStore", "store_from_settings", "REGISTROS_TABLE", "SALIDAS_TABLE"]
