"""
Context Resolver: weather and topography signal for a coordinate.

Resolution order per signal:

**Location name**
    1. Reverse geocoder (BigDataCloud client endpoint)
    2. Nearest known city within its radius
    3. Coarse region boxes (India sub-regions, US, Canada, Europe)

**Weather**
    1. Per-coordinate TTL cache (10 min)
    2. Open-Meteo current weather
    3. Deterministic estimate from coordinates + day of year,
       flagged ``is_estimated``

**Topography**
    1. Per-coordinate TTL cache (1 h)
    2. Climate / terrain / cultural style derived from coordinates and
       the resolved region
"""

import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests

from config.constants import COORDINATE_PRECISION, DEFAULT_LATITUDE, DEFAULT_LONGITUDE
from core.logging import get_logger
from stylist.cache import TTLCache
from stylist.models import ForecastSlot, TopographyData, WeatherData

logger = get_logger(__name__)


# ── Reference tables ──────────────────────────────────────────────

@dataclass(frozen=True)
class KnownCity:
    name: str
    lat: float
    lon: float
    radius: float
    region: str


KNOWN_CITIES: Tuple[KnownCity, ...] = (
    KnownCity("Delhi", 28.6139, 77.2090, 0.5, "North India"),
    KnownCity("Mumbai", 19.0760, 72.8777, 0.3, "West India"),
    KnownCity("Bangalore", 12.9716, 77.5946, 0.3, "South India"),
    KnownCity("Chennai", 13.0827, 80.2707, 0.3, "South India"),
    KnownCity("Kolkata", 22.5726, 88.3639, 0.3, "East India"),
    KnownCity("Hyderabad", 17.3850, 78.4867, 0.3, "South India"),
    KnownCity("Jaipur", 26.9124, 75.7873, 0.3, "North India"),
    KnownCity("Nagpur", 21.1458, 79.0882, 0.3, "Central India"),
    KnownCity("Ahmedabad", 23.0225, 72.5714, 0.3, "West India"),
    KnownCity("Goa", 15.2993, 74.1240, 0.2, "West India"),
    KnownCity("Chandigarh", 30.7333, 76.7794, 0.2, "North India"),
    KnownCity("Patna", 25.5941, 85.1376, 0.3, "East India"),
    KnownCity("Lucknow", 26.8467, 80.9462, 0.3, "North India"),
    KnownCity("Pune", 18.5204, 73.8567, 0.3, "West India"),
    KnownCity("Vadodara", 22.3072, 73.1812, 0.2, "West India"),
    KnownCity("Surat", 21.1702, 72.8311, 0.2, "West India"),
    KnownCity("Gurgaon", 28.4595, 77.0266, 0.2, "North India"),
    KnownCity("Noida", 28.5355, 77.3910, 0.2, "North India"),
    KnownCity("New York", 40.7128, -74.0060, 0.5, "United States"),
    KnownCity("London", 51.5074, -0.1278, 0.3, "United Kingdom"),
    KnownCity("Tokyo", 35.6762, 139.6503, 0.5, "Japan"),
    KnownCity("Singapore", 1.3521, 103.8198, 0.2, "Singapore"),
    KnownCity("Dubai", 25.2048, 55.2708, 0.3, "United Arab Emirates"),
    KnownCity("San Francisco", 37.7749, -122.4194, 0.3, "United States"),
)

UNKNOWN_LOCATION = "Your Location"

_WEATHER_ICONS = {
    "Clear": "sunny",
    "Sunny": "sunny",
    "Clouds": "cloudy",
    "Mist": "cloudy",
    "Fog": "cloudy",
    "Rain": "rainy",
    "Drizzle": "rainy",
    "Thunderstorm": "thunderstorm",
    "Snow": "snow",
}
_DEFAULT_ICON = "partly-sunny"

_REGION_CULTURE = {
    "North India": (
        "North Indian Contemporary",
        ["Kurta-jeans fusion", "Ethnic-western mix", "Layered looks", "Statement accessories"],
    ),
    "South India": (
        "South Indian Modern",
        ["Cotton comfort wear", "Traditional-modern blend", "Bright colors", "Handloom fabrics"],
    ),
    "West India": (
        "Western Indian Chic",
        ["Business casual", "Coastal comfort", "Vibrant prints", "Designer fusion"],
    ),
    "East India": (
        "East Indian Artistic",
        ["Intellectual casual", "Handwoven textiles", "Cultural motifs", "Artistic expressions"],
    ),
}
_DEFAULT_INDIAN_CULTURE = (
    "Contemporary Indian",
    ["Fusion wear", "Comfortable casuals", "Seasonal adaptability", "Cultural elements"],
)
_DEFAULT_GLOBAL_CULTURE = (
    "Global Contemporary",
    ["Smart casual", "Layered basics", "Seasonal adaptability", "Minimal accessories"],
)

_CITY_TRENDS = {
    "mumbai": ["Business chic", "Monsoon-ready", "Bollywood inspired", "Coastal casual"],
    "delhi": ["Power dressing", "Seasonal layers", "Designer labels", "Political chic"],
    "bangalore": ["Tech casual", "Weather adaptive", "International styles", "Startup chic"],
    "kolkata": ["Intellectual style", "Cultural fusion", "Handloom appreciation", "Artistic flair"],
    "chennai": ["Traditional modern", "Cotton comfort", "Temple jewelry", "South Indian elegance"],
    "hyderabad": ["Nizami elegance", "Tech professional", "Pearl accessories", "Royal inspired"],
    "pune": ["Student casual", "Cultural blend", "Comfortable chic", "Educational elegance"],
    "jaipur": ["Royal heritage", "Rajasthani prints", "Jewelry focus", "Desert colors"],
    "goa": ["Beach casual", "Bohemian style", "Tropical prints", "Vacation vibes"],
}


# ── Pure helpers (no I/O, easily testable) ───────────────────────

def coordinate_key(lat: float, lon: float) -> str:
    return f"{lat:.{COORDINATE_PRECISION}f},{lon:.{COORDINATE_PRECISION}f}"


def condition_from_wmo_code(code: Any) -> str:
    """Map a WMO weather interpretation code onto a coarse condition."""
    try:
        code = int(code)
    except (TypeError, ValueError):
        return "Clear"
    if code == 0:
        return "Clear"
    if 1 <= code <= 3:
        return "Clouds"
    if 45 <= code <= 48:
        return "Fog"
    if 51 <= code <= 67 or 80 <= code <= 82:
        return "Rain"
    if 71 <= code <= 77 or 85 <= code <= 86:
        return "Snow"
    if 95 <= code <= 99:
        return "Thunderstorm"
    return "Clear"


def weather_icon(condition: str) -> str:
    return _WEATHER_ICONS.get(condition, _DEFAULT_ICON)


def nearest_known_city(lat: float, lon: float) -> Optional[KnownCity]:
    """Closest city whose radius (in degrees) contains the coordinate."""
    best: Optional[KnownCity] = None
    best_distance = math.inf
    for city in KNOWN_CITIES:
        distance = math.hypot(lat - city.lat, lon - city.lon)
        if distance <= city.radius and distance < best_distance:
            best, best_distance = city, distance
    return best


def _in_india(lat: float, lon: float) -> bool:
    return 8 <= lat <= 37 and 68 <= lon <= 97


def location_from_coordinates(lat: float, lon: float) -> Tuple[str, str]:
    """
    Offline ``(location_name, region)`` for a coordinate.

    Indian coordinates outside any known city radius are refined into
    named sub-regions; other continents fall back to coarse boxes.
    """
    city = nearest_known_city(lat, lon)
    if city:
        return city.name, city.region

    if _in_india(lat, lon):
        if lat >= 28 and 76 <= lon <= 78:
            return "Delhi NCR", "North India"
        if 18 <= lat <= 20 and 72 <= lon <= 73:
            return "Mumbai Region", "West India"
        if 12 <= lat <= 13 and 77 <= lon <= 78:
            return "Bangalore Region", "South India"
        if lat >= 25:
            return "Northern India", "North India"
        if lat <= 15:
            return "Southern India", "South India"
        if lon <= 75:
            return "Western India", "West India"
        return "Eastern India", "East India"
    if 24 <= lat <= 49 and -125 <= lon <= -66:
        return "United States", "United States"
    if 49 <= lat <= 61 and -141 <= lon <= -52:
        return "Canada", "Canada"
    if 35 <= lat <= 71 and -10 <= lon <= 40:
        return "Europe", "Europe"
    return UNKNOWN_LOCATION, "Unknown"


def estimate_weather(lat: float, lon: float, location: str, today: date) -> WeatherData:
    """
    Deterministic weather estimate used when the provider is unreachable.

    Identical coordinates on the same day always give identical output.
    """
    day_of_year = today.timetuple().tm_yday
    location_seed = int((abs(lat) + abs(lon)) * 1000) % 100
    date_seed = day_of_year % 10

    if lat > 30:
        base_temp = 15 + location_seed % 15
        conditions = ["Clear", "Clouds", "Partly Cloudy"]
    elif lat > 20:
        base_temp = 20 + location_seed % 15
        conditions = ["Clear", "Sunny", "Partly Cloudy", "Clouds"]
    elif lat > 0:
        base_temp = 25 + location_seed % 10
        conditions = ["Sunny", "Clear", "Partly Cloudy"]
    else:
        base_temp = 18 + location_seed % 17
        conditions = ["Clear", "Clouds", "Partly Cloudy"]

    month = today.month - 1  # 0 = January
    if month >= 11 or month <= 2:
        base_temp -= 5
    elif 6 <= month <= 8:
        base_temp += 5
    elif month > 8:
        base_temp -= 2

    base_temp = max(10, min(45, base_temp))
    condition = conditions[(location_seed + date_seed) % len(conditions)]

    return WeatherData(
        temperature=base_temp,
        condition=condition,
        description=f"{condition.lower()} skies (estimated)",
        humidity=45 + location_seed % 35,
        wind_speed=3 + location_seed % 12,
        location=location,
        icon=weather_icon(condition),
        forecast={
            "morning": ForecastSlot(base_temp - 4, condition),
            "afternoon": ForecastSlot(base_temp + 3, condition),
            "evening": ForecastSlot(base_temp - 2, condition),
        },
        is_estimated=True,
    )


def weather_from_open_meteo(payload: Dict[str, Any], location: str) -> WeatherData:
    current = payload["current_weather"]
    temp = int(round(float(current["temperature"])))
    condition = condition_from_wmo_code(current.get("weathercode"))
    humidity_series = (payload.get("hourly") or {}).get("relative_humidity_2m") or []
    humidity = humidity_series[0] if humidity_series and humidity_series[0] else 65
    return WeatherData(
        temperature=temp,
        condition=condition,
        description=f"{condition.lower()} skies",
        humidity=int(round(float(humidity))),
        wind_speed=int(round(float(current.get("windspeed") or 0))),
        location=location,
        icon=weather_icon(condition),
        forecast={
            "morning": ForecastSlot(temp - 2, condition),
            "afternoon": ForecastSlot(temp + 4, condition),
            "evening": ForecastSlot(temp - 1, condition),
        },
    )


def _climate_for_latitude(lat: float) -> Tuple[str, str]:
    lat = abs(lat)
    if lat > 30:
        return "Temperate", "Distinct seasons with cold winters and warm summers"
    if lat > 25:
        return "Semi-arid to Subtropical", "Hot summers, mild winters, monsoon season"
    if lat > 15:
        return "Tropical", "Warm year-round with monsoon seasons"
    return "Equatorial", "Consistently warm and humid"


def _indian_terrain(lat: float, lon: float) -> str:
    if lat > 28 and 76 < lon < 78:
        return "Plains with urban landscape"
    if 25 < lat < 30:
        return "Desert and semi-arid plains"
    if lat < 15 and 74 < lon < 78:
        return "Coastal plains and hills"
    if lon > 88:
        return "River delta and plains"
    return "Mixed plains and plateaus"


def analyze_topography(lat: float, lon: float, location: str, region: str) -> TopographyData:
    climate, seasonal = _climate_for_latitude(lat)
    if "India" in region:
        terrain = _indian_terrain(lat, lon)
        cultural_style, trends = _REGION_CULTURE.get(region, _DEFAULT_INDIAN_CULTURE)
        trends = _CITY_TRENDS.get(location.lower(), trends)
    else:
        terrain = "Plains"
        cultural_style, trends = _DEFAULT_GLOBAL_CULTURE

    return TopographyData(
        location=location,
        region=region,
        climate=climate,
        terrain=terrain,
        cultural_style=cultural_style,
        seasonal_considerations=seasonal,
        local_fashion_trends=list(trends),
        latitude=lat,
        longitude=lon,
    )


def topography_styling(topography: TopographyData) -> Dict[str, List[str]]:
    """Colours, fabrics, tips and cultural elements suited to a location."""
    climate = topography.climate
    if climate in ("Tropical", "Equatorial"):
        colors = ["White", "Light Blue", "Coral", "Mint", "Beige", "Pastel Pink"]
        fabrics = ["Cotton", "Linen", "Bamboo", "Modal", "Breathable synthetics"]
    elif climate.startswith("Semi-arid"):
        colors = ["Earth tones", "Khaki", "Rust", "Olive", "Cream", "Terracotta"]
        fabrics = ["Cotton", "Linen", "Lightweight wool", "Silk blends"]
    elif climate == "Temperate":
        colors = ["Navy", "Burgundy", "Forest Green", "Charcoal", "Mustard", "Deep Purple"]
        fabrics = ["Wool", "Cotton blends", "Cashmere", "Denim", "Flannel"]
    else:
        colors = ["Versatile neutrals", "Seasonal colors", "Regional favorites"]
        fabrics = ["Adaptive fabrics", "Seasonal materials"]

    tips: List[str] = []
    cultural: List[str] = []
    if "India" in topography.region:
        cultural = [
            "Incorporate traditional prints",
            "Mix ethnic and western elements",
            "Consider local jewelry styles",
            "Respect cultural sensitivities",
        ]
        tips = {
            "North India": [
                "Layer for temperature variations",
                "Embrace bold colors and patterns",
                "Mix traditional kurtas with modern bottoms",
                "Accessorize with statement pieces",
            ],
            "South India": [
                "Prioritize comfort in humid weather",
                "Choose breathable cotton fabrics",
                "Incorporate temple jewelry",
                "Opt for traditional-modern fusion",
            ],
            "West India": [
                "Dress for business and leisure",
                "Choose monsoon-appropriate fabrics",
                "Embrace coastal casual styles",
                "Mix international and local trends",
            ],
            "East India": [
                "Appreciate handwoven textiles",
                "Choose intellectual casual styles",
                "Incorporate cultural motifs",
                "Balance tradition with modernity",
            ],
        }.get(topography.region, [])

    return {
        "recommended_colors": colors,
        "fabric_suggestions": fabrics,
        "style_tips": tips,
        "cultural_elements": cultural,
    }


# ── External providers ────────────────────────────────────────────

def _reverse_geocode(url: str, lat: float, lon: float, timeout: float) -> Dict[str, Any]:
    resp = requests.get(
        url,
        params={"latitude": lat, "longitude": lon, "localityLanguage": "en"},
        timeout=timeout,
    )
    resp.raise_for_status()
    return resp.json()


def _fetch_open_meteo(url: str, lat: float, lon: float, timeout: float) -> Dict[str, Any]:
    resp = requests.get(
        url,
        params={
            "latitude": lat,
            "longitude": lon,
            "current_weather": "true",
            "hourly": "temperature_2m,weathercode,relative_humidity_2m",
            "timezone": "auto",
        },
        timeout=timeout,
    )
    resp.raise_for_status()
    return resp.json()


class ContextResolver:
    """
    Resolves weather and topography for coordinates.

    Thread-safe. Caches are injected so each instance owns its own
    per-coordinate entries.
    """

    def __init__(
        self,
        weather_cache: TTLCache,
        topography_cache: TTLCache,
        weather_url: str = "https://api.open-meteo.com/v1/forecast",
        geocode_url: str = "https://api.bigdatacloud.net/data/reverse-geocode-client",
        timeout: float = 5.0,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._weather_cache = weather_cache
        self._topography_cache = topography_cache
        self._weather_url = weather_url
        self._geocode_url = geocode_url
        self._timeout = timeout
        self._today = today

    @classmethod
    def from_settings(cls, settings) -> "ContextResolver":
        return cls(
            weather_cache=TTLCache(
                settings.weather_cache_ttl_seconds, settings.context_cache_max_entries
            ),
            topography_cache=TTLCache(
                settings.topography_cache_ttl_seconds, settings.context_cache_max_entries
            ),
            weather_url=settings.weather_api_url,
            geocode_url=settings.geocode_api_url,
            timeout=settings.context_request_timeout_seconds,
        )

    # ── Public API ────────────────────────────────────────────────

    def get_weather(
        self, latitude: Optional[float] = None, longitude: Optional[float] = None,
    ) -> WeatherData:
        lat, lon = _with_defaults(latitude, longitude)
        key = coordinate_key(lat, lon)

        cached = self._weather_cache.get(key)
        if cached is not None:
            logger.debug("Weather cache hit", coordinates=key)
            return cached

        location, _ = self._resolve_location(lat, lon)
        try:
            weather = weather_from_open_meteo(
                _fetch_open_meteo(self._weather_url, lat, lon, self._timeout), location,
            )
        except (requests.RequestException, AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(
                "Weather provider failed, using estimate",
                coordinates=key,
                error=str(e),
            )
            weather = estimate_weather(lat, lon, location, self._today())

        self._weather_cache.set(key, weather)
        return weather

    def get_topography(
        self, latitude: Optional[float] = None, longitude: Optional[float] = None,
    ) -> TopographyData:
        lat, lon = _with_defaults(latitude, longitude)
        key = coordinate_key(lat, lon)

        cached = self._topography_cache.get(key)
        if cached is not None:
            logger.debug("Topography cache hit", coordinates=key)
            return cached

        location, region = self._resolve_location(lat, lon)
        topography = analyze_topography(lat, lon, location, region)
        self._topography_cache.set(key, topography)
        return topography

    def clear_caches(self) -> None:
        self._weather_cache.clear()
        self._topography_cache.clear()

    # ── Location resolution ───────────────────────────────────────

    def _resolve_location(self, lat: float, lon: float) -> Tuple[str, str]:
        """
        ``(name, region)`` via the geocoder, falling back to the offline
        city table. A geocoded "India" keeps the coordinate-derived
        sub-region so regional styling still applies.
        """
        offline_name, offline_region = location_from_coordinates(lat, lon)
        try:
            data = _reverse_geocode(self._geocode_url, lat, lon, self._timeout)
        except (requests.RequestException, ValueError) as e:
            logger.info("Reverse geocoding failed, using coordinate lookup", error=str(e))
            return offline_name, offline_region

        if not isinstance(data, dict):
            logger.info(
                "Reverse geocoder returned unexpected payload, using coordinate lookup",
                payload_type=type(data).__name__,
            )
            return offline_name, offline_region

        name = _first_text(data, "city", "locality", "principalSubdivision") or UNKNOWN_LOCATION
        country = _first_text(data, "countryName") or offline_region
        if country == "India" and "India" in offline_region:
            region = offline_region
        else:
            region = country
        return name, region


def _with_defaults(latitude: Optional[float], longitude: Optional[float]) -> Tuple[float, float]:
    lat = DEFAULT_LATITUDE if latitude is None else float(latitude)
    lon = DEFAULT_LONGITUDE if longitude is None else float(longitude)
    return lat, lon


def _first_text(data: Dict[str, Any], *keys: str) -> str:
    """First non-blank string value among ``keys``."""
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""
