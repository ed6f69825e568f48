# backend/missionmap/schemas/rule.py
from pydantic import BaseModel
from typing import Optional


class Rule(BaseModel):
    id: str
    mission_id: str
    name: str
    description: str = ""
    value: str = ""
    geometry_id: Optional[str] = None


class RuleIn(BaseModel):
    id: Optional[str] = None
    name: str
    description: str = ""
    value: str = ""
    geometry_id: Optional[str] = None
