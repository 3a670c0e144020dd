"""Settings management - loads from .env and tracker.yaml."""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from dotenv import load_dotenv


@dataclass
class RoutingConfig:
    """Options for the openrouteservice provider."""

    profile: str = "driving-car"
    geocode_results: int = 5

    @classmethod
    def from_dict(cls, data: dict) -> "RoutingConfig":
        return cls(
            profile=data.get("profile", "driving-car"),
            geocode_results=int(data.get("geocode_results", 5)),
        )


@dataclass
class ScraperConfig:
    """Options for importing listing pages."""

    min_width: int = 200
    min_height: int = 150
    max_images: int = 10

    @classmethod
    def from_dict(cls, data: dict) -> "ScraperConfig":
        return cls(
            min_width=int(data.get("min_width", 200)),
            min_height=int(data.get("min_height", 150)),
            max_images=int(data.get("max_images", 10)),
        )


@dataclass
class Settings:
    """Application settings loaded from environment and config files."""

    # Database
    db_path: str

    # Server
    host: str
    port: int

    # openrouteservice
    ors_api_key: str
    ors_base_url: str

    # Schedule
    daily_check_time: str  # HH:MM format

    log_level: str = "INFO"

    routing: RoutingConfig = field(default_factory=RoutingConfig)
    scraper: ScraperConfig = field(default_factory=ScraperConfig)

    @classmethod
    def load(cls, env_path: str | None = None, config_path: str | None = None) -> "Settings":
        """Load settings from .env file and tracker.yaml."""
        if env_path:
            load_dotenv(env_path)
        else:
            load_dotenv()

        routing = RoutingConfig()
        scraper = ScraperConfig()
        config_file = Path(config_path) if config_path else Path("config/tracker.yaml")
        if config_file.exists():
            with open(config_file) as f:
                config_data = yaml.safe_load(f) or {}
            routing = RoutingConfig.from_dict(config_data.get("routing") or {})
            scraper = ScraperConfig.from_dict(config_data.get("scraper") or {})

        return cls(
            db_path=os.getenv("DB_PATH", "real_estate.db"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            ors_api_key=os.getenv("ORS_API_KEY", ""),
            ors_base_url=os.getenv("ORS_BASE_URL", "https://api.openrouteservice.org"),
            daily_check_time=os.getenv("DAILY_CHECK_TIME", "08:00"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            routing=routing,
            scraper=scraper,
        )

    @property
    def check_hour_minute(self) -> tuple[int, int]:
        hour, minute = map(int, self.daily_check_time.split(":"))
        return hour, minute

    def validate(self) -> list[str]:
        """Validate settings and return list of errors."""
        errors = []
        if not self.ors_api_key:
            errors.append("ORS_API_KEY is not set, geocoding and travel times are disabled")
        if not re.fullmatch(r"([01]?\d|2[0-3]):[0-5]\d", self.daily_check_time):
            errors.append(f"DAILY_CHECK_TIME must be HH:MM, got {self.daily_check_time!r}")
        return errors
