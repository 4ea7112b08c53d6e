from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[1]
DATA_DIR = BASE_DIR / "data"
PUBLIC_DIR = BASE_DIR / "public"


def _pick_path(*candidates: Path) -> Path:
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return candidates[0]


PEDESTRIAN_CSV_SOURCE = os.getenv("PEDESTRIAN_CSV_SOURCE") or str(
    _pick_path(
        DATA_DIR / "pedestrian_data.csv",
        PUBLIC_DIR / "pedestrian_data.csv",
    )
)
PEDESTRIAN_GEOJSON_SOURCE = os.getenv("PEDESTRIAN_GEOJSON_SOURCE") or str(
    _pick_path(
        DATA_DIR / "pedestrian_data.geojson",
        PUBLIC_DIR / "pedestrian_data.geojson",
    )
)

FETCH_TIMEOUT_S = float(os.getenv("FETCH_TIMEOUT_S", "60"))

FRONTEND_ORIGINS = [o.strip() for o in os.getenv("FRONTEND_ORIGIN", "*").split(",") if o.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
