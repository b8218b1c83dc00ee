"""
Configuration store for SAFER.

Loads and saves <root>/config.json. Missing keys are filled from defaults
so a partial file still yields a complete SaferConfig.
"""

import copy
import json
import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any

from .context import SaferContext
from .errors import ConfigError
from .validate import ValidationError, validate, validate_before_write

logger = logging.getLogger(__name__)

CONFIG_VERSION = "1.0.0"


@dataclass
class UserConfig:
    name: str = ""
    email: str = ""
    timezone: str = "Europe/London"


@dataclass
class LimitsConfig:
    max_wip: int = 3
    default_time_box: int = 90                 # minutes
    review_frequency: str = "weekly"           # weekly, biweekly


@dataclass
class GitConfig:
    auto_commit: bool = True
    commit_prefix: str = "[SAFER]"
    remote_sync: bool = False
    remote_name: str = "origin"
    remote_branch: str = "main"


@dataclass
class GitHubConfig:
    enabled: bool = False
    owner: str = ""
    repo: str = ""
    token: str = ""
    branch: str = "main"


@dataclass
class CalendarConfig:
    enabled: bool = False
    calendar_name: str = "Work"
    review_day: str = "Friday"
    review_time: str = "16:00"


@dataclass
class DashboardConfig:
    port: int = 3456
    auto_open: bool = False
    refresh_interval: int = 30


@dataclass
class HooksConfig:
    enabled: bool = True
    enforce_dod: bool = True
    require_item_link: bool = False
    repositories: list[str] = field(default_factory=list)


@dataclass
class NotificationsConfig:
    desktop: bool = True
    sound: bool = False


@dataclass
class SaferConfig:
    """Complete configuration, one attribute per section."""
    version: str = CONFIG_VERSION
    user: UserConfig = field(default_factory=UserConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    git: GitConfig = field(default_factory=GitConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    calendar: CalendarConfig = field(default_factory=CalendarConfig)
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)
    hooks: HooksConfig = field(default_factory=HooksConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "SaferConfig":
        """Build a config from (possibly partial) stored data.

        Unknown keys are dropped; missing keys take their defaults.
        """
        merged = _merge_defaults(cls().to_dict(), data)
        kwargs = {"version": merged["version"]}
        for f in fields(cls):
            if f.name == "version":
                continue
            section_cls = type(getattr(cls(), f.name))
            if not isinstance(merged[f.name], dict):
                raise TypeError(f"section '{f.name}' must be an object")
            known = {sf.name for sf in fields(section_cls)}
            section = {k: v for k, v in merged[f.name].items() if k in known}
            kwargs[f.name] = section_cls(**section)
        return cls(**kwargs)


def _merge_defaults(defaults: dict, data: dict) -> dict:
    merged = copy.deepcopy(defaults)
    for key, value in data.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_defaults(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(ctx: SaferContext) -> SaferConfig:
    """Load configuration, or defaults when the file is absent.

    Raises:
        ConfigError: If the file is unreadable or not a JSON object
    """
    path = ctx.config_file
    if not path.exists():
        return SaferConfig()

    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from None
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from None

    if not isinstance(data, dict):
        raise ConfigError(f"Invalid configuration in {path}: expected an object")

    try:
        config = SaferConfig.from_dict(data)
        validate(config.to_dict(), "config")
    except (TypeError, ValidationError) as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from None
    return config


def save_config(ctx: SaferContext, config: SaferConfig) -> None:
    """Validate and write configuration.

    Raises:
        ConfigError: If the configuration fails schema validation or cannot be written
    """
    data = config.to_dict()
    path = ctx.config_file
    try:
        validate_before_write(data, "config", path)
    except ValidationError as e:
        raise ConfigError(str(e)) from None

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2) + "\n")
    except OSError as e:
        raise ConfigError(f"Cannot write {path}: {e}") from None


def _split_key(key: str) -> list[str]:
    parts = [p for p in key.split(".") if p]
    if not parts:
        raise ConfigError("Empty configuration key")
    return parts


def _lookup(data: dict, parts: list[str], key: str) -> Any:
    value: Any = data
    for part in parts:
        if not isinstance(value, dict) or part not in value:
            raise ConfigError(f"Unknown configuration key: {key}")
        value = value[part]
    return value


def get_config_value(ctx: SaferContext, key: str) -> Any:
    """Get a value by dotted path, e.g. "limits.max_wip"."""
    return _lookup(load_config(ctx).to_dict(), _split_key(key), key)


def parse_value(raw: str, current: Any = None) -> Any:
    """Parse a command-line value.

    JSON literals (true, 5, ["a"]) are decoded; anything else stays a
    string. A key whose current value is a string always receives the
    raw text so "123" stays "123".
    """
    if isinstance(current, str):
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def set_config_value(ctx: SaferContext, key: str, raw: str) -> Any:
    """Set a value by dotted path, validate and save. Returns the stored value."""
    parts = _split_key(key)
    data = load_config(ctx).to_dict()

    current = _lookup(data, parts, key)
    if isinstance(current, dict):
        raise ConfigError(f"{key} is a section; set one of its keys instead")

    value = parse_value(raw, current)
    parent = _lookup(data, parts[:-1], key) if len(parts) > 1 else data
    parent[parts[-1]] = value

    save_config(ctx, SaferConfig.from_dict(data))
    logger.info(f"Config {key} set to {value!r}")
    return value
