"""Distance-based QR validity windows.

A holder standing at the venue gets a longer entry window; anyone further
away gets the short default so a forwarded screenshot goes stale quickly.
The table is a step function ordered by radius and must stay monotonic:
a smaller distance never yields a shorter window.
"""
import math
from typing import NamedTuple

EARTH_RADIUS_KM = 6371.0

QR_TYPE_STANDARD = "standard"
QR_TYPE_VENUE_PROXIMITY = "venue_proximity"
QR_TYPE_VENUE_ENTRY = "venue_entry"


class ExpiryTier(NamedTuple):
    max_distance_km: float
    window_seconds: int
    qr_type: str


# Checked in order; first radius that contains the holder wins
EXPIRY_TIERS: tuple[ExpiryTier, ...] = (
    ExpiryTier(0.1, 180, QR_TYPE_VENUE_ENTRY),
    ExpiryTier(0.5, 60, QR_TYPE_VENUE_PROXIMITY),
)


def great_circle_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Haversine distance between two WGS84 points, in kilometres."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def window_for_distance(distance_km: float | None, default_seconds: int) -> tuple[int, str]:
    if distance_km is None or math.isnan(distance_km):
        return default_seconds, QR_TYPE_STANDARD
    for tier in EXPIRY_TIERS:
        if distance_km <= tier.max_distance_km:
            return max(tier.window_seconds, default_seconds), tier.qr_type
    return default_seconds, QR_TYPE_STANDARD
