"""Configuration management for the LinkBeam relay."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import yaml


@dataclass
class RateLimitConfig:
    """Fixed-window admission limits for one scope."""

    max_requests: int
    window_seconds: float = 60.0


@dataclass
class RateLimitsConfig:
    """Admission limits per scope."""

    # Keyed by requester IP
    create: RateLimitConfig = field(default_factory=lambda: RateLimitConfig(10))
    # Keyed by session ID
    submit: RateLimitConfig = field(default_factory=lambda: RateLimitConfig(5))


@dataclass
class SessionConfig:
    """Pairing session timing."""

    ttl: float = 300.0  # 5 minutes
    poll_interval: float = 1.0
    grace_period: float = 3.0  # tolerate listen arriving before create is visible
    sweep_interval: float = 60.0


@dataclass
class Config:
    """Relay configuration."""

    port: int = 3000
    bind_address: str = "0.0.0.0"
    base_url: str = "http://localhost:3000"
    log_level: str = "INFO"
    log_file: str | None = None
    sessions: SessionConfig = field(default_factory=SessionConfig)
    rate_limits: RateLimitsConfig = field(default_factory=RateLimitsConfig)

    def submit_url(self, session_id: str) -> str:
        """Build the submission page URL embedded in the QR code."""
        return f"{self.base_url.rstrip('/')}/submit/{session_id}"


def get_config_path(custom_path: Path | None = None) -> Path:
    """Get the configuration file path.

    Args:
        custom_path: Override path. If None, returns default.

    Returns:
        Path to config file.
    """
    if custom_path is not None:
        return custom_path
    return Path.home() / ".config" / "linkbeam" / "config.yaml"


def _default_file_reader(path: Path) -> dict[str, Any] | None:
    """Default file reader that loads YAML from disk."""
    if not path.exists():
        return None
    try:
        content = path.read_text()
        if not content.strip():
            return None
        return yaml.safe_load(content)
    except yaml.YAMLError:
        return None


def _parse_rate_limit(data: dict[str, Any], default: RateLimitConfig) -> RateLimitConfig:
    return RateLimitConfig(
        max_requests=data.get("max_requests", default.max_requests),
        window_seconds=data.get("window_seconds", default.window_seconds),
    )


def load_config(
    path: Path | None = None,
    file_reader: Callable[[Path], dict[str, Any] | None] | None = None,
) -> Config:
    """Load configuration from file.

    Args:
        path: Path to config file. If None, uses default path.
        file_reader: Injectable file reader for testing.

    Returns:
        Config object with values from file or defaults.
    """
    config_path = get_config_path(path)
    reader = file_reader or _default_file_reader

    data = reader(config_path)

    if not isinstance(data, dict):
        return Config()

    # Parse sessions config section
    sessions_data = data.get("sessions", {})
    sessions_config = SessionConfig(
        ttl=sessions_data.get("ttl", SessionConfig.ttl),
        poll_interval=sessions_data.get("poll_interval", SessionConfig.poll_interval),
        grace_period=sessions_data.get("grace_period", SessionConfig.grace_period),
        sweep_interval=sessions_data.get(
            "sweep_interval", SessionConfig.sweep_interval
        ),
    )

    # Parse rate_limits config section
    limits_data = data.get("rate_limits", {})
    defaults = RateLimitsConfig()
    limits_config = RateLimitsConfig(
        create=_parse_rate_limit(limits_data.get("create", {}), defaults.create),
        submit=_parse_rate_limit(limits_data.get("submit", {}), defaults.submit),
    )

    return Config(
        port=data.get("port", Config.port),
        bind_address=data.get("bind_address", Config.bind_address),
        base_url=data.get("base_url", Config.base_url),
        log_level=data.get("log_level", Config.log_level),
        log_file=data.get("log_file", Config.log_file),
        sessions=sessions_config,
        rate_limits=limits_config,
    )
