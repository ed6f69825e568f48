# backend/missionmap/models/rule.py
from sqlalchemy import String, Column, ForeignKey, Text
from .base import Base


class RuleRow(Base):
    __tablename__ = "rules"
    id = Column(String, primary_key=True)
    mission_id = Column(String, ForeignKey("missions.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, default="")
    value = Column(Text, default="")
    # リンクの正はこちら側のみ。geometries 側の逆参照は読み込み時に再構成する
    geometry_id = Column(String, nullable=True)
