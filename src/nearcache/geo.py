"""Great-circle distance helpers.

:func:`distance_km` drives the home-feed proximity policy;
:func:`format_distance` renders a distance the way the client shows it
next to a business ("577m", "1.5km").
"""

from __future__ import annotations

import math
from typing import Optional

from nearcache.models import Coordinates

EARTH_RADIUS_KM = 6371.0


def distance_km(a: Coordinates, b: Coordinates) -> float:
    """Haversine distance between two points, in kilometers."""
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    dphi = math.radians(b.latitude - a.latitude)
    dlambda = math.radians(b.longitude - a.longitude)

    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    # Rounding can leave h just outside [0, 1] for near-antipodal points.
    h = min(1.0, max(0.0, h))
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def format_distance(km: Optional[float]) -> str:
    """Format a distance for display.

    Distances of a kilometer or more use one decimal (``"1.5km"``), shorter
    ones are rounded to whole meters (``"577m"``). ``None``, NaN and
    negative values render as ``"N/A"``.
    """
    if km is None or math.isnan(km) or km < 0:
        return "N/A"
    if km >= 1:
        return f"{km:.1f}km"
    return f"{round(km * 1000)}m"
