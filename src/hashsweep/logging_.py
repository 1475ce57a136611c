import json
import logging
import uuid
from datetime import datetime, timezone, tzinfo
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class JsonFormatter(logging.Formatter):
    def __init__(
        self,
        run_id: str,
        tz: Optional[tzinfo] = None,
    ) -> None:
        super().__init__()
        self._run_id = run_id
        self._tzinfo = tz

    def format(self, record: logging.LogRecord) -> str:
        ts = _format_ts(record.created, self._tzinfo)
        payload: Dict[str, Any] = {
            "ts": ts,
            "level": record.levelname,
            "component": record.name,
            "run_id": self._run_id,
        }

        message = record.getMessage()
        parsed = _parse_json(message)
        if parsed is not None:
            event = parsed.get("event")
            if event:
                payload["event"] = event
            payload["meta"] = parsed
        else:
            payload["event"] = getattr(record, "event", None) or message
            meta = getattr(record, "meta", None)
            if meta is not None:
                payload["meta"] = meta

        if record.exc_info:
            payload["error"] = self.formatException(record.exc_info)

        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def setup_logging(
    level: str = "INFO",
    *,
    log_dir: Optional[Path] = None,
    log_file: str = "hashsweep.log",
    max_mb: int = 20,
    backup_count: int = 10,
    use_json: bool = False,
    to_console: bool = True,
    timezone_name: str = "local",
    run_id: Optional[str] = None,
) -> str:
    run_id = run_id or uuid.uuid4().hex
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    tz = _resolve_tz(timezone_name)
    if use_json:
        formatter: logging.Formatter = JsonFormatter(run_id, tz=tz)
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")

    if log_dir:
        log_dir.mkdir(parents=True, exist_ok=True)
        max_bytes = max(1, int(max_mb)) * 1024 * 1024
        file_handler = RotatingFileHandler(
            log_dir / log_file,
            maxBytes=max_bytes,
            backupCount=max(1, int(backup_count)),
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    if to_console or not log_dir:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    return run_id


def _parse_json(message: str) -> Optional[Dict[str, Any]]:
    if not message or not message.startswith("{"):
        return None
    try:
        parsed = json.loads(message)
    except (TypeError, ValueError):
        return None
    if isinstance(parsed, dict):
        return parsed
    return None


def _resolve_tz(name: str) -> Optional[tzinfo]:
    if not name:
        return None
    if str(name).lower() in {"local", "system", "default"}:
        return None
    try:
        return ZoneInfo(str(name))
    except (ZoneInfoNotFoundError, ValueError):
        return None


def _format_ts(epoch_seconds: float, tz: Optional[tzinfo]) -> str:
    if tz is None:
        return (
            datetime.fromtimestamp(epoch_seconds)
            .astimezone()
            .strftime("%Y-%m-%d %H:%M:%S")
        )
    return (
        datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
        .astimezone(tz)
        .strftime("%Y-%m-%d %H:%M:%S")
    )
