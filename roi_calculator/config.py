from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_STORAGE_KEY = "ecom_roi_calc_scenarios_v1"


@dataclass(frozen=True)
class Settings:
    storage_dir: Path
    storage_key: str = DEFAULT_STORAGE_KEY
    log_level: str = "WARNING"


def get_settings() -> Settings:
    storage_dir = os.getenv("ROI_CALC_STORAGE_DIR") or str(Path.home() / ".roi_calculator")
    return Settings(
        storage_dir=Path(storage_dir).expanduser(),
        storage_key=os.getenv("ROI_CALC_STORAGE_KEY", DEFAULT_STORAGE_KEY),
        log_level=os.getenv("ROI_CALC_LOG_LEVEL", "WARNING").upper(),
    )
