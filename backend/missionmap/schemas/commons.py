# backend/missionmap/schemas/commons.py
import uuid
from typing import List, Literal, Tuple, Union

GeometryType = Literal["Point", "Polygon"]
AttachmentSource = Literal["none", "existing", "new"]

# (lat, lng) EPSG:4326
Coordinate = Tuple[float, float]
Coordinates = Union[Coordinate, List[Coordinate]]

MIN_POLYGON_VERTICES = 3


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"
