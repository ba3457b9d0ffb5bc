import math
from typing import Any, Mapping

from ..schemas.common import Coordinates

# Convenciones de nombres vistas en los proveedores
_COORD_KEYS = (("latitude", "longitude"), ("lat", "lon"))


def finite_float(v: Any) -> float | None:
    if v is None or isinstance(v, bool):
        return None
    try:
        f = float(v)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def extract_coordinates(block: Mapping[str, Any] | None) -> Coordinates | None:
    """
    Normalize `{latitude, longitude}` or `{lat, lon}` into Coordinates.

    Both values must be present and numeric, otherwise None.
    """
    if not isinstance(block, Mapping):
        return None
    for lat_key, lon_key in _COORD_KEYS:
        if lat_key in block or lon_key in block:
            lat = finite_float(block.get(lat_key))
            lon = finite_float(block.get(lon_key))
            if lat is None or lon is None:
                return None
            if not (-90 <= lat <= 90 and -180 <= lon <= 180):
                return None
            return Coordinates(lat=lat, lon=lon)
    return None
