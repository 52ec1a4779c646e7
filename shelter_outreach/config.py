"""Configuration helpers for the cleaning pipeline and the outreach scheduler."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple, Union

import yaml
from dotenv import load_dotenv

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ConfigurationError(RuntimeError):
    """Raised when configuration files are missing or malformed."""


_SUPPORTED_EXTENSIONS = {".json", ".yaml", ".yml"}

_WEEKDAY_NAMES = {
    "mon": 0,
    "tue": 1,
    "wed": 2,
    "thu": 3,
    "fri": 4,
    "sat": 5,
    "sun": 6,
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

DEFAULT_SENDER_CLASS = "shelter_outreach.senders.sendgrid.SendGridSender"
DEFAULT_SENDER_OPTIONS = {
    "from_email": "support@whitecoat-md.com",
    "from_name": "WhiteCoat DVM",
    "reply_to": "mitch@whitecoat-md.com",
}
ENV_FILES = (".env.local", ".env")


@dataclass(frozen=True)
class CampaignConfig:
    """Knobs for one scheduler invocation. Weekdays use Monday = 0."""

    daily_quota: int = 20
    allowed_weekdays: FrozenSet[int] = frozenset({0, 1, 2, 3, 4})
    allowed_hours: Tuple[int, int] = (7, 16)
    inter_message_delay: float = 3.0
    force_override_gate: bool = False

    def __post_init__(self) -> None:
        if self.daily_quota < 0:
            raise ConfigurationError("daily_quota must not be negative")
        start, end = self.allowed_hours
        if not (0 <= start < end <= 24):
            raise ConfigurationError(f"allowed_hours must satisfy 0 <= start < end <= 24, got {self.allowed_hours}")
        if any(day not in range(7) for day in self.allowed_weekdays):
            raise ConfigurationError(f"allowed_weekdays must be between 0 and 6, got {sorted(self.allowed_weekdays)}")
        if self.inter_message_delay < 0:
            raise ConfigurationError("inter_message_delay must not be negative")

    def with_overrides(self, *, force: Optional[bool] = None, quota: Optional[int] = None) -> "CampaignConfig":
        changes: Dict[str, Any] = {}
        if force is not None:
            changes["force_override_gate"] = force
        if quota is not None:
            changes["daily_quota"] = quota
        return replace(self, **changes) if changes else self


@dataclass(frozen=True)
class PathsConfig:
    output_dir: Path = Path("output")
    seed_file: Optional[Path] = Path("starter-list.csv")
    state_file: Path = Path("output/sent_emails.json")
    daily_log_dir: Path = Path("output/daily_logs")


@dataclass(frozen=True)
class AppConfig:
    campaign: CampaignConfig = field(default_factory=CampaignConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    sender: Dict[str, Any] = field(default_factory=lambda: {"class": DEFAULT_SENDER_CLASS, "options": dict(DEFAULT_SENDER_OPTIONS)})


def load_configuration(path: str | Path) -> Dict[str, Any]:
    """Load configuration data from a JSON or YAML file."""

    file_path = Path(path)
    if not file_path.exists():
        raise ConfigurationError(f"Configuration file '{file_path}' was not found")

    if file_path.suffix.lower() not in _SUPPORTED_EXTENSIONS:
        raise ConfigurationError(
            f"Unsupported configuration format '{file_path.suffix}'. Supported extensions: {sorted(_SUPPORTED_EXTENSIONS)}"
        )

    text = file_path.read_text(encoding="utf-8")
    try:
        if file_path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Configuration file '{file_path}' is malformed: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file '{file_path}' must contain a mapping at the top level")
    return data


def build_app_config(data: Optional[Dict[str, Any]] = None) -> AppConfig:
    """Turn raw configuration data into typed settings, applying defaults."""

    data = data or {}
    campaign = _build_campaign(data.get("campaign") or {})
    paths = _build_paths(data.get("paths") or {})

    sender = dict(data.get("sender") or {})
    sender.setdefault("class", DEFAULT_SENDER_CLASS)
    default_options = DEFAULT_SENDER_OPTIONS if sender["class"] == DEFAULT_SENDER_CLASS else {}
    sender.setdefault("options", dict(default_options))
    if not isinstance(sender["options"], dict):
        raise ConfigurationError("sender.options must be a mapping")
    return AppConfig(campaign=campaign, paths=paths, sender=sender)


def _build_campaign(section: Dict[str, Any]) -> CampaignConfig:
    defaults = CampaignConfig()
    try:
        hours = section.get("allowed_hours", defaults.allowed_hours)
        if len(hours) != 2:
            raise ConfigurationError("allowed_hours must be a [start, end] pair")
        return CampaignConfig(
            daily_quota=int(section.get("daily_quota", defaults.daily_quota)),
            allowed_weekdays=parse_weekdays(section.get("allowed_weekdays", sorted(defaults.allowed_weekdays))),
            allowed_hours=(int(hours[0]), int(hours[1])),
            inter_message_delay=float(section.get("inter_message_delay", defaults.inter_message_delay)),
            force_override_gate=_parse_flag(section.get("force_override_gate", False), "force_override_gate"),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid campaign configuration: {exc}") from exc


def _parse_flag(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigurationError(f"{name} must be true or false, got {value!r}")
    return value


def _build_paths(section: Dict[str, Any]) -> PathsConfig:
    defaults = PathsConfig()
    output_dir = Path(section.get("output_dir", defaults.output_dir))
    seed = section.get("seed_file", defaults.seed_file)
    return PathsConfig(
        output_dir=output_dir,
        seed_file=Path(seed) if seed else None,
        state_file=Path(section.get("state_file", output_dir / "sent_emails.json")),
        daily_log_dir=Path(section.get("daily_log_dir", output_dir / "daily_logs")),
    )


def parse_weekdays(values: Iterable[Union[str, int]]) -> FrozenSet[int]:
    """Accept weekday indices (Monday = 0), three-letter names (``"Mon"``) or full names (``"monday"``)."""

    if isinstance(values, str):
        values = values.split(",")
    days = set()
    for value in values:
        if isinstance(value, bool):
            raise ConfigurationError(f"Unknown weekday {value!r}")
        if isinstance(value, int):
            days.add(value)
            continue
        text = str(value).strip().lower()
        if text.isdigit():
            days.add(int(text))
            continue
        if text not in _WEEKDAY_NAMES:
            raise ConfigurationError(f"Unknown weekday '{value}'")
        days.add(_WEEKDAY_NAMES[text])
    return frozenset(days)



def load_environment(directory: Optional[PathLike] = None) -> None:
    """Populate ``os.environ`` from ``.env.local`` and ``.env`` without overriding existing values."""

    base = Path(directory) if directory else Path.cwd()
    for name in ENV_FILES:
        env_path = base / name
        if env_path.exists():
            load_dotenv(env_path, override=False)
            LOGGER.debug("Loaded environment from %s", env_path)


def require_env(name: str) -> str:
    value = os.environ.get(name, "").strip()
    if not value:
        raise ConfigurationError(f"{name} is not set (expected in the environment or .env.local)")
    return value


__all__ = [
    "AppConfig",
    "CampaignConfig",
    "ConfigurationError",
    "PathsConfig",
    "build_app_config",
    "load_configuration",
    "load_environment",
    "parse_weekdays",
    "require_env",
]
