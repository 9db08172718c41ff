"""Configuration management using TOML + environment variables."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomllib
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[no-redef]

CONFIG_DIR = Path.home() / ".remote-terminal"
CONFIG_FILE = CONFIG_DIR / "config.toml"

DEFAULT_PROMPT = "remote ~$ "


@dataclass
class ServerConfig:
    url: str = ""
    token: str = field(default="", repr=False)


@dataclass
class ReconnectConfig:
    enabled: bool = True
    delay_ms: int = 1000
    attempts: int = 5
    timeout_ms: int = 10000


@dataclass
class TerminalConfig:
    prompt: str = DEFAULT_PROMPT
    banner: bool = True
    support_contact: str = "Contact the administrator of your server for support."


@dataclass
class LoggingConfig:
    level: str = "WARNING"
    file: str = "~/.remote-terminal/client.log"


@dataclass
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    reconnect: ReconnectConfig = field(default_factory=ReconnectConfig)
    terminal: TerminalConfig = field(default_factory=TerminalConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def ensure_config_dir() -> None:
    """Create config directory with secure permissions."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    os.chmod(CONFIG_DIR, 0o700)


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from TOML file with env var overrides."""
    config = AppConfig()
    config_file = path or CONFIG_FILE

    if config_file.exists():
        with open(config_file, "rb") as f:
            data = tomllib.load(f)

        server = data.get("server", {})
        config.server.url = server.get("url", config.server.url)
        config.server.token = server.get("token", config.server.token)

        reconnect = data.get("reconnect", {})
        config.reconnect.enabled = reconnect.get("enabled", config.reconnect.enabled)
        config.reconnect.delay_ms = reconnect.get("delay_ms", config.reconnect.delay_ms)
        config.reconnect.attempts = reconnect.get("attempts", config.reconnect.attempts)
        config.reconnect.timeout_ms = reconnect.get("timeout_ms", config.reconnect.timeout_ms)

        terminal = data.get("terminal", {})
        config.terminal.prompt = terminal.get("prompt", config.terminal.prompt)
        config.terminal.banner = terminal.get("banner", config.terminal.banner)
        config.terminal.support_contact = terminal.get("support_contact", config.terminal.support_contact)

        logging_cfg = data.get("logging", {})
        config.logging.level = logging_cfg.get("level", config.logging.level)
        config.logging.file = logging_cfg.get("file", config.logging.file)

    # Environment variable overrides
    if env_url := os.environ.get("REMOTE_TERMINAL_URL"):
        config.server.url = env_url
    if env_token := os.environ.get("REMOTE_TERMINAL_TOKEN"):
        config.server.token = env_token
    if env_attempts := os.environ.get("REMOTE_TERMINAL_RECONNECT_ATTEMPTS"):
        config.reconnect.attempts = int(env_attempts)
    if env_timeout := os.environ.get("REMOTE_TERMINAL_TIMEOUT_MS"):
        config.reconnect.timeout_ms = int(env_timeout)
    if env_log_level := os.environ.get("REMOTE_TERMINAL_LOG_LEVEL"):
        config.logging.level = env_log_level

    return config
