"""
modules/tool_usage/distance_tool.py
-------------------------------------
Travel-time estimate using the Haversine formula with a fixed average speed.
No external HTTP calls are made; this is a straight-line heuristic, not a
routing-engine result, and any user-facing text should say so.

Config knob (config.py):
  AVERAGE_TRAVEL_SPEED_KMH -- speed used for distance → minutes (default: 30)
"""

from __future__ import annotations

import math
from typing import Optional

import config

# ---------------------------------------------------------------------------
# Pure maths
# ---------------------------------------------------------------------------


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points (Haversine formula) in km."""
    r = config.EARTH_RADIUS_KM
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lam = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lam / 2) ** 2
    )
    return 2 * r * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def _km_to_minutes(km: float, speed_kmh: float) -> float:
    """Straight-line km to minutes at a given speed."""
    return (km / speed_kmh) * 60.0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def estimate_travel_minutes(
    from_lat: float,
    from_lng: float,
    to_lat: float,
    to_lng: float,
    speed_kmh: Optional[float] = None,
) -> int:
    """
    Estimated travel minutes between two coordinates, rounded to an integer.

    Symmetric in its endpoints and 0 for identical points.
    """
    if from_lat == to_lat and from_lng == to_lng:
        return 0
    speed = speed_kmh or config.AVERAGE_TRAVEL_SPEED_KMH
    km = haversine_km(from_lat, from_lng, to_lat, to_lng)
    return _round_half_up(_km_to_minutes(km, speed))


# ---------------------------------------------------------------------------
# DistanceTool
# ---------------------------------------------------------------------------


class DistanceTool:
    """
    Computes travel times between lat/lon points using the Haversine formula
    plus a configurable average speed (config.AVERAGE_TRAVEL_SPEED_KMH).
    """

    def __init__(self, speed_kmh: Optional[float] = None) -> None:
        self.speed_kmh: float = speed_kmh or config.AVERAGE_TRAVEL_SPEED_KMH

    def travel_time_minutes(
        self,
        lat1: float,
        lon1: float,
        lat2: float,
        lon2: float,
    ) -> int:
        """Return integer travel minutes between two points."""
        return estimate_travel_minutes(lat1, lon1, lat2, lon2, self.speed_kmh)

    def travel_time_matrix(
        self,
        coords: list[tuple[float, float]],
    ) -> list[list[int]]:
        """Return a full n x n travel-time matrix [minutes]."""
        n = len(coords)
        return [
            [
                0 if i == j
                else self.travel_time_minutes(
                    coords[i][0], coords[i][1], coords[j][0], coords[j][1],
                )
                for j in range(n)
            ]
            for i in range(n)
        ]

    def distance_km(self, lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        return haversine_km(lat1, lon1, lat2, lon2)
