from .geodesic import EARTH_RADIUS_KM, haversine_km, haversine_m

__all__ = ["EARTH_RADIUS_KM", "haversine_km", "haversine_m"]
