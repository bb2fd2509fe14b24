#!/usr/bin/env python3
"""Configuration and small helpers for the lyric MV player."""

import math
import os
from dataclasses import dataclass
from typing import Dict, Optional


def load_env_file(env_path: Optional[str] = None) -> Dict[str, str]:
    """Load environment variables from .env file.

    Args:
        env_path: Path to .env file, if None will look for .env in project root

    Returns:
        Dictionary with environment variables
    """
    if env_path is None:
        # Try to find .env in project root
        project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        env_path = os.path.join(project_root, ".env")

    env_vars: Dict[str, str] = {}

    if os.path.exists(env_path):
        with open(env_path) as file:
            for line in file:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    value = value.strip().strip('"').strip("'")
                    # Expand user directory if needed (e.g., ~/path/to/dir)
                    if "~" in value:
                        value = os.path.expanduser(value)
                    env_vars[key.strip()] = value

    return env_vars


def get_env_value(key: str, default: Optional[str] = None, env_path: Optional[str] = None) -> Optional[str]:
    """Get a value from the .env file, falling back to the process environment.

    Args:
        key: Environment variable name
        default: Default value if not found
        env_path: Optional path to the .env file

    Returns:
        Value string or default
    """
    env_vars = load_env_file(env_path)
    if key in env_vars:
        return env_vars[key]
    return os.environ.get(key, default)


def get_env_path(key: str, default: Optional[str] = None, env_path: Optional[str] = None) -> Optional[str]:
    """Get a path from environment variables, expanding user directory if needed."""
    value = get_env_value(key, default, env_path)
    return os.path.expanduser(value) if value and "~" in value else value


def get_env_float(key: str, default: float, env_path: Optional[str] = None) -> float:
    """Get a float setting; unparsable values fall back to the default with a warning."""
    value = get_env_value(key, None, env_path)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        print(f"Warning: {key}={value!r} is not a number, using {default}")
        return default


def clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, value))


def format_time(seconds: float) -> str:
    """Format seconds as m:ss for the timeline labels."""
    if seconds is None or math.isnan(seconds) or math.isinf(seconds):
        return "0:00"
    seconds = max(0.0, seconds)
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"


@dataclass
class PlayerSettings:
    """Tunable values of the player, read from .env or the environment."""

    idle_timeout: float = 2.0
    drift_tolerance: float = 0.5
    slideshow_interval: float = 10.0
    font_size: float = 3.5
    font_min: float = 1.5
    font_max: float = 8.0
    font_step: float = 0.25
    fps: int = 30
    ffmpeg_path: str = "ffmpeg"

    @classmethod
    def from_env(cls, env_path: Optional[str] = None) -> "PlayerSettings":
        defaults = cls()
        settings = cls(
            idle_timeout=get_env_float("LYRIC_MV_IDLE_TIMEOUT", defaults.idle_timeout, env_path),
            drift_tolerance=get_env_float("LYRIC_MV_DRIFT_TOLERANCE", defaults.drift_tolerance, env_path),
            slideshow_interval=get_env_float("LYRIC_MV_SLIDESHOW_INTERVAL", defaults.slideshow_interval, env_path),
            font_min=get_env_float("LYRIC_MV_FONT_MIN", defaults.font_min, env_path),
            font_max=get_env_float("LYRIC_MV_FONT_MAX", defaults.font_max, env_path),
            fps=int(get_env_float("LYRIC_MV_FPS", defaults.fps, env_path)),
            ffmpeg_path=get_env_path("FFMPEG_PATH", defaults.ffmpeg_path, env_path) or defaults.ffmpeg_path,
        )
        if settings.font_min > settings.font_max:
            print(f"Warning: font range {settings.font_min}-{settings.font_max} is inverted, using defaults")
            settings.font_min, settings.font_max = defaults.font_min, defaults.font_max
        settings.font_size = clamp(settings.font_size, settings.font_min, settings.font_max)
        return settings
