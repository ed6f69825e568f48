# backend/missionmap/models/geometry.py
from sqlalchemy import String, Column, ForeignKey, Text
from .base import Base


class GeometryRow(Base):
    __tablename__ = "geometries"
    id = Column(String, primary_key=True)
    mission_id = Column(String, ForeignKey("missions.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    geometry_type = Column(String, nullable=False)  # Point|Polygon
    coordinates = Column(Text, nullable=False)  # JSON string ([lat,lng] or [[lat,lng],...], EPSG:4326)
