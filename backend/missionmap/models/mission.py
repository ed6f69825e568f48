# backend/missionmap/models/mission.py
from sqlalchemy import String, Column, Text
from .base import Base


class MissionRow(Base):
    __tablename__ = "missions"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, default="")
