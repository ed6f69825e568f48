# backend/missionmap/settings.py
import os
from pathlib import Path


def _default_database_url() -> str:
    # コンテナでは /app/data、ローカルでは <repo>/data に SQLite を置く
    data_dir = Path("/app/data")
    if not data_dir.exists():
        data_dir = Path(__file__).resolve().parents[2] / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{data_dir / 'missionmap.db'}"


DATABASE_URL = os.getenv("DATABASE_URL") or _default_database_url()

# 完成ジェスチャ（ダブルクリック）を受け付けるまでの待ち時間
FINISH_DEBOUNCE_S = float(os.getenv("MISSIONMAP_FINISH_DEBOUNCE_MS", "100")) / 1000.0

LOG_LEVEL = os.getenv("MISSIONMAP_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"

CORS_ORIGINS = [o.strip() for o in os.getenv("MISSIONMAP_CORS_ORIGINS", "*").split(",") if o.strip()]
