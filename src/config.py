"""
SEALANE routing configuration.

Algorithm constants loaded from environment variables so deployments can
tune them without touching code. The API layer has its own pydantic
settings in api/config.py; this module stays free of web dependencies.

Usage:
    from src.config import routing_settings

    print(routing_settings.detour_offset_km)
"""

import os
from dataclasses import dataclass, field


def get_float(key: str, default: float) -> float:
    """Get float from environment variable."""
    try:
        return float(os.getenv(key, str(default)))
    except (ValueError, TypeError):
        return default


def get_int(key: str, default: int) -> int:
    """Get int from environment variable."""
    try:
        return int(os.getenv(key, str(default)))
    except (ValueError, TypeError):
        return default


@dataclass
class RoutingSettings:
    """Route synthesis and edit-history settings loaded from environment."""

    # Route synthesis
    detour_offset_km: float = field(default_factory=lambda: get_float("SEALANE_DETOUR_OFFSET_KM", 200.0))
    min_direct_steps: int = field(default_factory=lambda: get_int("SEALANE_MIN_DIRECT_STEPS", 10))
    direct_step_km: float = field(default_factory=lambda: get_float("SEALANE_DIRECT_STEP_KM", 100.0))
    cruise_speed_knots: float = field(default_factory=lambda: get_float("SEALANE_CRUISE_SPEED_KNOTS", 20.0))

    # Edit history
    history_limit: int = field(default_factory=lambda: get_int("SEALANE_HISTORY_LIMIT", 50))
    edit_poll_interval: float = field(default_factory=lambda: get_float("SEALANE_EDIT_POLL_INTERVAL", 0.1))
    coordinate_precision: int = field(default_factory=lambda: get_int("SEALANE_COORDINATE_PRECISION", 6))

    def validate(self) -> list:
        """Return a list of configuration problems (empty when valid)."""
        errors = []
        if self.detour_offset_km <= 0:
            errors.append("SEALANE_DETOUR_OFFSET_KM must be positive")
        if self.min_direct_steps < 1:
            errors.append("SEALANE_MIN_DIRECT_STEPS must be at least 1")
        if self.direct_step_km <= 0:
            errors.append("SEALANE_DIRECT_STEP_KM must be positive")
        if self.cruise_speed_knots <= 0:
            errors.append("SEALANE_CRUISE_SPEED_KNOTS must be positive")
        if self.history_limit < 2:
            errors.append("SEALANE_HISTORY_LIMIT must be at least 2")
        if self.edit_poll_interval <= 0:
            errors.append("SEALANE_EDIT_POLL_INTERVAL must be positive")
        return errors


routing_settings = RoutingSettings()
