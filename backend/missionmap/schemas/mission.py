# backend/missionmap/schemas/mission.py
from pydantic import BaseModel, ConfigDict
from typing import Optional


class Mission(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""


class MissionIn(BaseModel):
    id: Optional[str] = None  # 未指定ならサーバ側で採番
    name: str
    description: str = ""
