from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class PlacesConfig:
    """
    Google Maps Platform settings for the store locator.

    An empty ``api_key`` disables store lookup entirely.
    """

    api_key: str = os.getenv("GOOGLE_MAPS_API_KEY", "")
    timeout: float = 5.0
    max_results: int = 5
    search_query: str = "homeopathic medicine store"
    geocode_url: str = "https://maps.googleapis.com/maps/api/geocode/json"
    text_search_url: str = "https://maps.googleapis.com/maps/api/place/textsearch/json"
    details_url: str = "https://maps.googleapis.com/maps/api/place/details/json"

    @property
    def enabled(self) -> bool:
        return bool(self.api_key and self.api_key.strip())


DEFAULT_PLACES_CONFIG = PlacesConfig()
