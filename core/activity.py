from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
import os
import tempfile
import uuid
from typing import Iterable

LOG_FILENAME = "activity_log.csv"
PIPE = "|"
COLUMNS = ("timestamp", "level", "scope", "op", "accion", "detalle", "trace")
HEADER = PIPE.join(COLUMNS) + "\n"


def _candidate_log_dirs() -> Iterable[Path]:
    """Yield candidate directories where the activity log can be stored."""

    env_log = os.getenv("GANADO_LOG_DIR")
    if env_log:
        yield Path(env_log)

    env_data = os.getenv("GANADO_DATA_DIR")
    if env_data:
        yield Path(env_data) / "logs"

    yield Path("data") / "logs"

    yield Path(tempfile.gettempdir()) / "ganado-logs"


def get_log_path(ensure: bool = True) -> Path:
    """Return the path to ``activity_log.csv`` in a writable directory."""

    last_err: OSError | None = None

    for base in _candidate_log_dirs():
        try:
            base.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            last_err = exc
            continue

        log_path = base / LOG_FILENAME

        if ensure and not log_path.exists():
            try:
                with open(log_path, "w", encoding="utf-8") as handle:
                    handle.write(HEADER)
            except OSError as exc:
                last_err = exc
                continue

        return log_path

    raise RuntimeError(
        "No se pudo crear / usar activity_log.csv en ningún directorio candidato. "
        f"Último error: {last_err}"
    )


def _sanitize(value: str) -> str:
    return value.replace(PIPE, "/").replace("\n", " ").strip()


def _format_line(message: str, level: str, scope: str, timestamp: str) -> str:
    if scope != "activity":
        return PIPE.join([timestamp, level, scope, "", "", _sanitize(message), ""]) + "\n"

    payload = {column: "" for column in COLUMNS}
    payload["timestamp"] = timestamp
    payload["level"] = level
    payload["scope"] = scope

    for raw_part in message.split(PIPE):
        part = raw_part.strip()
        if not part:
            continue
        if "=" in part:
            key, value = part.split("=", 1)
            key = key.strip()
            value = _sanitize(value)
            if key in payload:
                payload[key] = value
            elif key == "message" and not payload["detalle"]:
                payload["detalle"] = value
        elif not payload["detalle"]:
            payload["detalle"] = _sanitize(part)

    return PIPE.join(payload[column] for column in COLUMNS) + "\n"


def append_log(message: str, level: str = "INFO", scope: str = "app") -> None:
    """Append a line to the activity log without raising if it fails."""

    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    line = _format_line(message, level, scope, timestamp)
    print(f"[{level}] {scope}: {_sanitize(message)}", flush=True)

    try:
        path = get_log_path(ensure=True)
    except RuntimeError:
        return

    try:
        with open(path, "a", encoding="utf-8") as handle:
            handle.write(line)
    except OSError:
        return


def log_event(
    accion: str,
    detalle: str = "",
    *,
    op: str = "panel",
    level: str = "INFO",
    trace_id: str | None = None,
) -> None:
    """Log a user-facing action as an ``activity`` row."""

    message_parts = [
        f"op={op}",
        f"accion={accion.strip()}",
        f"detalle={detalle.strip()}" if detalle else None,
        f"trace={trace_id}" if trace_id else None,
    ]
    append_log(" | ".join(part for part in message_parts if part), level=level, scope="activity")


def new_trace(prefix: str = "") -> str:
    base = uuid.uuid4().hex[:8]
    return f"{prefix}{base}" if prefix else base


__all__ = ["get_log_path", "append_log", "log_event", "new_trace"]
