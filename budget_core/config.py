"""Runtime configuration read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import List, Mapping, Optional

from .exceptions import ValidationError
from .validators import parse_percent

DEFAULT_DATA_DIR = Path("data")
DEFAULT_ALERT_THRESHOLD = Decimal("20.00")


@dataclass(frozen=True)
class Settings:
    data_dir: Path = DEFAULT_DATA_DIR
    alert_threshold: Decimal = DEFAULT_ALERT_THRESHOLD
    password: Optional[str] = None
    env: str = "prod"
    allowed_origins: List[str] = field(default_factory=list)
    log_level: Optional[str] = None

    @property
    def is_dev(self) -> bool:
        return self.env in {"dev", "development"}

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        raw_threshold = env.get("DAILY_BUDGET_ALERT_THRESHOLD")
        try:
            threshold = (
                parse_percent(raw_threshold, "DAILY_BUDGET_ALERT_THRESHOLD")
                if raw_threshold
                else DEFAULT_ALERT_THRESHOLD
            )
        except ValidationError as exc:
            raise ValidationError(f"Invalid configuration: {exc}") from exc
        origins = env.get("DAILY_BUDGET_ALLOWED_ORIGINS", "")
        return cls(
            data_dir=Path(env.get("DAILY_BUDGET_DATA_DIR") or DEFAULT_DATA_DIR),
            alert_threshold=threshold,
            password=env.get("DAILY_BUDGET_PASSWORD") or None,
            env=env.get("DAILY_BUDGET_ENV", "prod").lower(),
            allowed_origins=[origin.strip() for origin in origins.split(",") if origin.strip()],
            log_level=env.get("DAILY_BUDGET_LOG_LEVEL") or None,
        )
