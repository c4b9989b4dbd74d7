from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigError, InvalidDimensions

DISPLAYS: tuple[str, ...] = ("gui", "console", "console-full")

DEFAULT_CONCURRENCY = 10
DEFAULT_REQUESTS = 20
DEFAULT_SCALE = 10
DEFAULT_TIMEOUT_S = 10.0
DEFAULT_DISPLAYS: tuple[str, ...] = ("console",)


@dataclass(frozen=True)
class BenchConfig:
    """Settings for one benchmark run, fixed at process start."""

    url: str
    concurrency: int = DEFAULT_CONCURRENCY
    requests: int = DEFAULT_REQUESTS
    scale: int = DEFAULT_SCALE
    timeout: float = DEFAULT_TIMEOUT_S
    displays: tuple[str, ...] = DEFAULT_DISPLAYS
    output_dir: Path | None = None
    log_level: str = "INFO"

    @property
    def total_requests(self) -> int:
        return self.concurrency * self.requests

    def validate(self) -> "BenchConfig":
        if self.concurrency <= 0 or self.requests <= 0:
            raise InvalidDimensions(
                f"concurrency and requests must be > 0 (got {self.concurrency}x{self.requests})"
            )
        if not self.url:
            raise ConfigError("a target URL is required")
        if not self.url.startswith(("http://", "https://")):
            raise ConfigError(f"unsupported URL scheme: {self.url!r}")
        if self.scale <= 0:
            raise ConfigError(f"scale must be > 0, got {self.scale}")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be > 0, got {self.timeout}")
        unknown = [name for name in self.displays if name not in DISPLAYS]
        if unknown:
            raise ConfigError(
                f"unknown display(s): {', '.join(unknown)} (choose from {', '.join(DISPLAYS)})"
            )
        return self


def parse_displays(values: list[str] | str | None) -> tuple[str, ...]:
    """Flatten repeated and comma separated display names, keeping order."""
    if values is None:
        return DEFAULT_DISPLAYS
    if isinstance(values, str):
        values = [values]
    names: list[str] = []
    for value in values:
        for item in value.split(","):
            item = item.strip()
            if item and item not in names:
                names.append(item)
    return tuple(names) or DEFAULT_DISPLAYS


__all__ = [
    "DISPLAYS",
    "DEFAULT_CONCURRENCY",
    "DEFAULT_REQUESTS",
    "DEFAULT_SCALE",
    "DEFAULT_TIMEOUT_S",
    "DEFAULT_DISPLAYS",
    "BenchConfig",
    "parse_displays",
]
