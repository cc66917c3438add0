"""Data model definitions: explicit boundaries between config, request, and panel layers."""

from dataclasses import dataclass, field, replace
from typing import Any, Literal

ChartStyle = Literal["default", "no_labels"]

CACHE_KEY_VERSION = "v1"


@dataclass(frozen=True)
class Location:
    """Fixed observer location for every chart."""

    latitude: float  # Decimal degrees, north positive
    longitude: float  # Decimal degrees, east positive
    name: str = ""  # Display name ("Monterey, CA")


@dataclass(frozen=True)
class ViewParameters:
    """Sky area the chart is centred on."""

    right_ascension: float  # Hours
    declination: float  # Degrees
    zoom: int


@dataclass(frozen=True)
class FallbackCandidate:
    """A celebrity date shown when the live request path fails."""

    label: str  # "Prince Sky (1984-06-07)"
    date: str  # "YYYY-MM-DD"


@dataclass(frozen=True)
class ChartRequest:
    """One star-chart request. Built fresh for each fetch attempt."""

    location: Location
    date: str  # "YYYY-MM-DD" (UTC calendar day)
    view: ViewParameters
    style: ChartStyle = "default"

    def cache_key(self) -> str:
        return (
            f"starchart:{CACHE_KEY_VERSION}:{self.date}:"
            f"{self.location.latitude}:{self.location.longitude}:{self.style}"
        )

    def to_payload(self) -> dict[str, Any]:
        """Wire body for ``POST /api/star-chart``."""
        return {
            "style": self.style,
            "observer": {
                "latitude": self.location.latitude,
                "longitude": self.location.longitude,
                "date": self.date,
            },
            "view": {
                "type": "area",
                "parameters": {
                    "position": {
                        "equatorial": {
                            "rightAscension": self.view.right_ascension,
                            "declination": self.view.declination,
                        }
                    },
                    "zoom": self.view.zoom,
                },
            },
        }


@dataclass(frozen=True)
class PanelState:
    """Everything the chart panel renders. Replaced, never mutated in place."""

    day_offset: int
    labels_on: bool = True
    image_url: str | None = None
    status: str = "Idle"
    source: str = "—"
    loading: bool = False
    image_loaded: bool = False

    @property
    def style(self) -> ChartStyle:
        return "default" if self.labels_on else "no_labels"

    def evolve(self, **changes: Any) -> "PanelState":
        return replace(self, **changes)


DEFAULT_LOCATION = Location(latitude=36.6002, longitude=-121.8947, name="Monterey, CA")
DEFAULT_VIEW = ViewParameters(right_ascension=10, declination=20, zoom=3)
DEFAULT_FALLBACKS: tuple[FallbackCandidate, ...] = (
    FallbackCandidate(label="Prince Sky (1984-06-07)", date="1984-06-07"),
    FallbackCandidate(label="Madonna Sky (1985-09-14)", date="1985-09-14"),
    FallbackCandidate(label="Whitney Sky (1991-02-10)", date="1991-02-10"),
    FallbackCandidate(label="MJ Sky (1993-08-10)", date="1993-08-10"),
)


@dataclass(frozen=True)
class PanelConfig:
    """Static inputs to a ChartPanel. Swap any field to test alternate setups."""

    location: Location = DEFAULT_LOCATION
    view: ViewParameters = DEFAULT_VIEW
    range_start: str = "1980-01-01"
    range_end: str = "2000-12-31"
    initial_date: str = "1990-04-20"
    fallbacks: tuple[FallbackCandidate, ...] = field(default=DEFAULT_FALLBACKS)
