"""Configuration management via .env file."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def _xdg_data_home() -> Path:
    return Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))


def _xdg_config_home() -> Path:
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


@dataclass
class AppConfig:
    # Paths
    data_dir: Path = field(default_factory=lambda: _xdg_data_home() / "lectern")
    config_dir: Path = field(default_factory=lambda: _xdg_config_home() / "lectern")
    db_path: Path = field(init=False)
    book_dir: Path = field(init=False)
    log_path: Path = field(init=False)

    # Reading sync
    heartbeat_window: int = 30  # seconds; longer gaps are not counted

    # Uploads
    max_upload_bytes: int = 10 * 1024 * 1024

    # Content slices (characters)
    content_length: int = 4000
    content_min_length: int = 100
    content_max_length: int = 10000

    def __post_init__(self) -> None:
        self.db_path = self.data_dir / "lectern.db"
        self.book_dir = self.data_dir / "books"
        self.log_path = self.data_dir / "lectern.log"
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.book_dir.mkdir(parents=True, exist_ok=True)
        self.config_dir.mkdir(parents=True, exist_ok=True)

    def clamp_content_length(self, length: Optional[int]) -> int:
        if length is None:
            length = self.content_length
        return max(self.content_min_length, min(length, self.content_max_length))


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def load_config(env_path: Optional[Path] = None) -> AppConfig:
    """Load config from .env file. Searches CWD then config dir."""
    search_paths = [
        env_path,
        Path.cwd() / ".env",
        _xdg_config_home() / "lectern" / ".env",
        Path.home() / ".env",
    ]
    for p in search_paths:
        if p and p.exists():
            load_dotenv(p)
            break

    kwargs = {}
    data_dir = os.getenv("LECTERN_DATA_DIR")
    if data_dir:
        kwargs["data_dir"] = Path(data_dir).expanduser()

    return AppConfig(
        heartbeat_window=_int_env(
            "LECTERN_HEARTBEAT_WINDOW", AppConfig.heartbeat_window
        ),
        max_upload_bytes=_int_env(
            "LECTERN_MAX_UPLOAD_BYTES", AppConfig.max_upload_bytes
        ),
        content_length=_int_env("LECTERN_CONTENT_LENGTH", AppConfig.content_length),
        **kwargs,
    )
