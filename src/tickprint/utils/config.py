from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from tickprint.exceptions.core import ConfigError
from tickprint.utils.timer import LOGS_PER_SECOND


class TickerConfig(BaseModel):
    rate: float = Field(
        default=float(LOGS_PER_SECOND),
        gt=0,
        allow_inf_nan=False,
        description="Ticks per second.",
    )
    log_config: Optional[str] = Field(default=None, description="Path to logging.json; bundled file if unset.")
    log_profile: Optional[str] = Field(default=None, description="Profile name inside logging.json.")

    @classmethod
    def from_options(cls, **options: Any) -> "TickerConfig":
        """Build from CLI-style options, dropping unset values."""
        given = {k: v for k, v in options.items() if v is not None}
        try:
            return cls(**given)
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc
