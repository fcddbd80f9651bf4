"""Configuration for healthtop."""

from __future__ import annotations

import json
import shlex
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from result import Err, Ok, Result

CONFIG_PATH = "~/.config/healthtop/config.json"

# JSON key -> AppConfig attribute
_KEYS: dict[str, str] = {
    "scanRoot": "scan_root",
    "maxDepth": "max_depth",
    "sizeFloor": "size_floor",
    "cacheLimit": "cache_limit",
    "imageLimit": "image_limit",
    "processLimit": "process_limit",
    "cacheDirNames": "cache_dir_names",
    "skipDirNames": "skip_dir_names",
    "containerTool": "container_tool",
    "packageCleanupCommand": "package_cleanup_command",
    "refreshInterval": "refresh_interval",
    "uiInterval": "ui_interval",
    "commandTimeout": "command_timeout",
}


@dataclass(slots=True)
class AppConfig:
    scan_root: str | None = None
    max_depth: int = 6
    size_floor: int = 100_000_000
    cache_limit: int = 10
    image_limit: int = 10
    process_limit: int = 5
    cache_dir_names: list[str] = field(default_factory=lambda: ["node_modules"])
    skip_dir_names: list[str] = field(default_factory=lambda: ["Library", "System", "Applications"])
    container_tool: str = "docker"
    package_cleanup_command: list[str] = field(default_factory=lambda: ["brew", "cleanup", "-s"])
    refresh_interval: float = 2.0
    ui_interval: float = 0.1
    command_timeout: float = 60.0

    def to_dict(self) -> dict[str, Any]:
        values = asdict(self)
        return {key: values[attr] for key, attr in _KEYS.items()}


def _str_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    return [str(x) for x in value]


def from_dict(data: dict[str, Any], defaults: AppConfig) -> AppConfig:
    scan_root = data.get("scanRoot", defaults.scan_root)
    command = data.get("packageCleanupCommand", defaults.package_cleanup_command)
    command = shlex.split(command) if isinstance(command, str) else _str_list(command)

    return AppConfig(
        scan_root=str(scan_root) if scan_root else None,
        max_depth=max(1, int(data.get("maxDepth", defaults.max_depth))),
        size_floor=max(0, int(data.get("sizeFloor", defaults.size_floor))),
        cache_limit=max(1, int(data.get("cacheLimit", defaults.cache_limit))),
        image_limit=max(1, int(data.get("imageLimit", defaults.image_limit))),
        process_limit=max(1, int(data.get("processLimit", defaults.process_limit))),
        cache_dir_names=_str_list(data.get("cacheDirNames", defaults.cache_dir_names)),
        skip_dir_names=_str_list(data.get("skipDirNames", defaults.skip_dir_names)),
        container_tool=str(data.get("containerTool", defaults.container_tool)),
        package_cleanup_command=command or list(defaults.package_cleanup_command),
        refresh_interval=max(0.5, float(data.get("refreshInterval", defaults.refresh_interval))),
        ui_interval=max(0.05, float(data.get("uiInterval", defaults.ui_interval))),
        command_timeout=max(1.0, float(data.get("commandTimeout", defaults.command_timeout))),
    )


def load_config(path: str | None = None) -> Result[AppConfig, str]:
    resolved = Path(path or CONFIG_PATH).expanduser()
    if not resolved.exists():
        return Ok(AppConfig())

    try:
        payload = json.loads(resolved.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            return Err(f"Config at {resolved} must be a JSON object.")
        return Ok(from_dict(payload, AppConfig()))
    except Exception as exc:  # noqa: BLE001
        return Err(f"Failed reading config at {resolved}: {exc}.")


def sample_config_json() -> str:
    return json.dumps(AppConfig().to_dict(), indent=2)
