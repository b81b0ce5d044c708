"""
Tracker configuration.

Options can be passed explicitly or read from the environment:

    WRITEGUARD_PAUSE_DURATION_MS=200 \\
    WRITEGUARD_AUTO_RESUME_TIMEOUT_MS=10000 \\
    WRITEGUARD_DEBUG=1 writeguard watch ./src

Durations are milliseconds, matching how generators and watchers usually
express them. The tracker converts to seconds when scheduling.
"""

import math
import os
from dataclasses import asdict, dataclass
from typing import Mapping, Optional

DEFAULT_PAUSE_DURATION_MS = 100
DEFAULT_AUTO_RESUME_TIMEOUT_MS = 5000

ENV_PAUSE_DURATION = "WRITEGUARD_PAUSE_DURATION_MS"
ENV_AUTO_RESUME_TIMEOUT = "WRITEGUARD_AUTO_RESUME_TIMEOUT_MS"
ENV_DEBUG = "WRITEGUARD_DEBUG"

_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class TrackerOptions:
    """
    Configuration for ChangeTracker.

    Attributes:
        pause_duration: Settle delay before resuming watch (ms, default 100).
            Local SSDs are fine with ~50ms; network drives (SMB/NFS) want
            100-200ms.
        auto_resume_timeout: Safety-net duration after which an unconfirmed
            pause is force-cleared (ms, default 5000). Must exceed the
            slowest expected generation.
        debug: Log every classification decision (default False).
    """

    pause_duration: float = DEFAULT_PAUSE_DURATION_MS
    auto_resume_timeout: float = DEFAULT_AUTO_RESUME_TIMEOUT_MS
    debug: bool = False

    def __post_init__(self) -> None:
        if not math.isfinite(self.pause_duration) or self.pause_duration < 0:
            raise ValueError(
                f"pause_duration must be a finite number >= 0 ms, got {self.pause_duration}"
            )
        if not math.isfinite(self.auto_resume_timeout) or self.auto_resume_timeout <= 0:
            raise ValueError(
                f"auto_resume_timeout must be a finite number > 0 ms, got {self.auto_resume_timeout}"
            )

    @property
    def pause_seconds(self) -> float:
        return self.pause_duration / 1000.0

    @property
    def auto_resume_seconds(self) -> float:
        return self.auto_resume_timeout / 1000.0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TrackerOptions":
        """
        Build options from WRITEGUARD_* environment variables.

        Unset or empty variables fall back to defaults.

        Raises:
            ValueError: If a duration variable is not a finite, in-range number
        """
        env = os.environ if environ is None else environ

        return cls(
            pause_duration=_read_ms(env, ENV_PAUSE_DURATION, DEFAULT_PAUSE_DURATION_MS),
            auto_resume_timeout=_read_ms(
                env, ENV_AUTO_RESUME_TIMEOUT, DEFAULT_AUTO_RESUME_TIMEOUT_MS
            ),
            debug=env.get(ENV_DEBUG, "").strip().lower() in _TRUTHY,
        )


def _read_ms(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of milliseconds, got {raw!r}") from None
