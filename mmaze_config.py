"""Runtime configuration: module defaults, overridable from the environment / .env."""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from dotenv import load_dotenv

from mmaze_grid import PathingGoal

__version__ = '20261019_1200'

MAX_STEPS = 100_000
SOLVED_DWELL = 1.0  # seconds to pause on the goal before continuing
LOG_LEVEL = logging.INFO  # DEBUG
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s]: %(message)s"

logger = logging.getLogger(__name__)


class MouseSpeed(Enum):
    """Milliseconds the mouse dwells between steps."""
    INSTA = 0
    FAST = 10
    MEDIUM = 100
    SLOW = 500

    @property
    def seconds(self) -> float:
        return self.value / 1000


DEFAULT_SPEED = MouseSpeed.FAST


@dataclass
class MouseConfig:
    speed: MouseSpeed = DEFAULT_SPEED
    auto_continue: bool = True
    go_home: bool = True
    path_by: PathingGoal = PathingGoal.TIME
    max_steps: int = MAX_STEPS
    store_dir: Optional[str] = None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{name}={raw!r} is not a boolean")


def _env_enum(name: str, enum_cls, default):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return enum_cls[raw.strip().upper()]
    except KeyError:
        options = ", ".join(m.name.lower() for m in enum_cls)
        raise ValueError(f"{name}={raw!r} must be one of: {options}") from None


def load_config(*, dotenv_path: Optional[str] = None) -> MouseConfig:
    """
    Build a MouseConfig from MMAZE_* environment variables.

    A .env file is loaded first (without overriding variables already set).
    Unset variables keep the MouseConfig defaults.
    """
    load_dotenv(dotenv_path=dotenv_path)

    raw_steps = os.getenv("MMAZE_MAX_STEPS")
    try:
        max_steps = int(raw_steps) if raw_steps else MAX_STEPS
    except ValueError:
        raise ValueError(f"MMAZE_MAX_STEPS={raw_steps!r} is not an integer") from None
    if max_steps < 1:
        raise ValueError(f"MMAZE_MAX_STEPS must be positive, got {max_steps}")

    config = MouseConfig(
        speed=_env_enum("MMAZE_SPEED", MouseSpeed, DEFAULT_SPEED),
        auto_continue=_env_bool("MMAZE_AUTO_CONTINUE", True),
        go_home=_env_bool("MMAZE_GO_HOME", True),
        path_by=_env_enum("MMAZE_PATH_BY", PathingGoal, PathingGoal.TIME),
        max_steps=max_steps,
        store_dir=os.getenv("MMAZE_STORE_DIR") or None,
    )
    logger.debug(f"Loaded {config}")
    return config


def get_log_level() -> int:
    raw = os.getenv("MMAZE_LOG_LEVEL")
    if not raw:
        return LOG_LEVEL
    level = logging.getLevelName(raw.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"MMAZE_LOG_LEVEL={raw!r} is not a logging level")
    return level


def setup_logging(level: Optional[int] = None) -> None:
    logging.basicConfig(
        level=level if level is not None else get_log_level(),
        format=LOG_FORMAT,
    )
