"""
Distance and containment primitives shared by demand synthesis, scoring and placement.

Coordinates are (lon, lat) degrees treated on a sphere of radius 6371 km for
distances and as planar x/y for containment.
"""
from math import radians, cos, sin, asin, sqrt

import numpy as np

from PlacementErrors import InvalidGeometry
from SpatialTypes import Coordinate

EARTH_RADIUS_KM = 6371.0
MIN_CENTROID_AREA = 1e-9


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates in km."""
    lon1, lat1, lon2, lat2 = map(radians, [a.lon, a.lat, b.lon, b.lat])
    dlon = lon2 - lon1
    dlat = lat2 - lat1
    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * asin(min(1.0, sqrt(h)))


def haversine_km_many(origin: Coordinate, lons, lats) -> np.ndarray:
    """Distances from one coordinate to many, vectorized over lons/lats."""
    lons = np.radians(np.asarray(lons, dtype=float))
    lats = np.radians(np.asarray(lats, dtype=float))
    lon0, lat0 = radians(origin.lon), radians(origin.lat)
    h = np.sin((lats - lat0) / 2) ** 2 + np.cos(lat0) * np.cos(lats) * np.sin((lons - lon0) / 2) ** 2
    return 2 * EARTH_RADIUS_KM * np.arcsin(np.minimum(1.0, np.sqrt(h)))


def is_inside_polygon(point: Coordinate, ring) -> bool:
    """
    Winding-number point-in-polygon test.

    The ring is treated as closed. Rings with fewer than 3 vertices are
    reported as "outside" rather than raising. Points exactly on the boundary
    get whatever the winding rule yields for them.
    """
    n = len(ring)
    if n < 3:
        return False

    x, y = point.lon, point.lat
    winding = 0
    for i in range(n):
        v1 = ring[i]
        v2 = ring[(i + 1) % n]
        if v1.lat <= y:
            if v2.lat > y:  # upward crossing
                if _cross(v1, v2, x, y) > 0:
                    winding += 1
        elif v2.lat <= y:  # downward crossing
            if _cross(v1, v2, x, y) < 0:
                winding -= 1

    return winding != 0


def points_inside_polygon(lons, lats, ring) -> np.ndarray:
    """Batch form of is_inside_polygon: boolean mask over the given points."""
    lons = np.asarray(lons, dtype=float)
    lats = np.asarray(lats, dtype=float)
    n = len(ring)
    if n < 3:
        return np.zeros(lons.shape, dtype=bool)

    xs = np.array([p.lon for p in ring])
    ys = np.array([p.lat for p in ring])
    winding = np.zeros(lons.shape, dtype=int)
    for i in range(n):
        j = (i + 1) % n
        cross = (xs[j] - xs[i]) * (lats - ys[i]) - (lons - xs[i]) * (ys[j] - ys[i])
        upward = (ys[i] <= lats) & (ys[j] > lats) & (cross > 0)
        downward = (ys[i] > lats) & (ys[j] <= lats) & (cross < 0)
        winding += upward.astype(int) - downward.astype(int)

    return winding != 0


def bounding_box(ring):
    """(min_lon, min_lat, max_lon, max_lat) of a ring."""
    lons = [p.lon for p in ring]
    lats = [p.lat for p in ring]
    return min(lons), min(lats), max(lons), max(lats)


def polygon_centroid(ring) -> Coordinate:
    """
    Area centroid of a simple polygon (shoelace formula).

    Raises InvalidGeometry for fewer than 3 vertices or a zero-area ring.
    """
    if len(ring) < 3:
        raise InvalidGeometry("A polygon must have at least 3 points.")

    xs = np.array([p.lon for p in ring])
    ys = np.array([p.lat for p in ring])
    # Explicitly closed rings contribute a zero-length closing edge
    xn = np.roll(xs, -1)
    yn = np.roll(ys, -1)
    cross = xs * yn - xn * ys

    area = 0.5 * cross.sum()
    if abs(area) < MIN_CENTROID_AREA:
        raise InvalidGeometry("Polygon area is zero, centroid undefined.")

    cx = ((xs + xn) * cross).sum() / (6 * area)
    cy = ((ys + yn) * cross).sum() / (6 * area)
    return Coordinate(float(cx), float(cy))


def _cross(v1: Coordinate, v2: Coordinate, x: float, y: float) -> float:
    # > 0 when (x, y) lies left of the directed edge v1 -> v2
    return (v2.lon - v1.lon) * (y - v1.lat) - (x - v1.lon) * (v2.lat - v1.lat)
