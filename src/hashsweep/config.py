from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "configs" / "config.yaml"


@dataclass
class HashListConfig:
    dir: Path = PROJECT_ROOT / "virus_md5_hashes"
    suffixes: List[str] = field(default_factory=lambda: [".md5"])
    algorithm: str = "md5"
    extra: Dict[str, str] = field(default_factory=dict)


@dataclass
class ScanConfig:
    follow_symlinks: bool = False
    quiet: bool = False


@dataclass
class ArchiveConfig:
    suffixes: List[str] = field(default_factory=lambda: [".zip"])
    max_depth: int = 32
    keep_extracted: bool = False
    scratch_dir: Optional[Path] = None


@dataclass
class LoggingConfig:
    dir: Optional[Path] = None
    file_name: str = "hashsweep.log"
    max_mb: int = 20
    backup_count: int = 10
    json: bool = False
    to_console: bool = True
    timezone: str = "local"


@dataclass
class Config:
    log_level: str = "INFO"
    hash_list: HashListConfig = field(default_factory=HashListConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    archives: ArchiveConfig = field(default_factory=ArchiveConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | Path | None = None) -> Config:
    """Read a YAML config; ``None`` falls back to the bundled default if present."""
    if path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return Config()
        config_path = DEFAULT_CONFIG_PATH
    else:
        config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"config file not found: {config_path}")

    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"cannot read config {config_path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError("config root must be a mapping")

    hash_raw = _as_dict(raw.get("hash_list"))
    extra_raw = _as_dict(hash_raw.get("extra"))
    hash_list = HashListConfig(
        dir=_resolve_path(hash_raw.get("dir", "virus_md5_hashes")),
        suffixes=_as_list(hash_raw.get("suffixes", [".md5"])),
        algorithm=str(hash_raw.get("algorithm", "md5")).lower(),
        extra={str(name): str(value) for name, value in extra_raw.items()},
    )

    scan_raw = _as_dict(raw.get("scan"))
    scan = ScanConfig(
        follow_symlinks=bool(scan_raw.get("follow_symlinks", False)),
        quiet=bool(scan_raw.get("quiet", False)),
    )

    archives_raw = _as_dict(raw.get("archives"))
    scratch_dir = archives_raw.get("scratch_dir")
    archives = ArchiveConfig(
        suffixes=_as_list(archives_raw.get("suffixes", [".zip"])),
        max_depth=_as_int(archives_raw, "archives.max_depth", 32),
        keep_extracted=bool(archives_raw.get("keep_extracted", False)),
        scratch_dir=_resolve_path(scratch_dir) if scratch_dir else None,
    )

    logging_raw = _as_dict(raw.get("logging"))
    log_dir = logging_raw.get("dir")
    logging_config = LoggingConfig(
        dir=_resolve_path(log_dir) if log_dir else None,
        file_name=str(logging_raw.get("file_name", "hashsweep.log")),
        max_mb=_as_int(logging_raw, "logging.max_mb", 20),
        backup_count=_as_int(logging_raw, "logging.backup_count", 10),
        json=bool(logging_raw.get("json", False)),
        to_console=bool(logging_raw.get("to_console", True)),
        timezone=str(logging_raw.get("timezone", "local")),
    )

    return Config(
        log_level=str(raw.get("log_level", "INFO")),
        hash_list=hash_list,
        scan=scan,
        archives=archives,
        logging=logging_config,
    )


def _resolve_path(value: str | Path) -> Path:
    path = Path(value).expanduser()
    if path.is_absolute():
        return path
    return PROJECT_ROOT / path


def _as_dict(value: Any) -> Dict[str, Any]:
    if isinstance(value, dict):
        return value
    return {}


def _as_list(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    if value is None:
        return []
    return [str(value)]


def _as_int(section: Dict[str, Any], key: str, default: int) -> int:
    value = section.get(key.rsplit(".", 1)[-1], default)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be an integer, got {value!r}") from exc
