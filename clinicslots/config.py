"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator

from .domain.models import DEFAULT_DAYS_TO_SCAN, MAX_DAYS_TO_SCAN, MIN_DAYS_TO_SCAN, BookingConfig


MAX_CALENDAR_DAYS = 31


class DefaultsConfig(BaseModel):
    """Default settings for availability queries."""
    timezone: str = "America/Toronto"
    days_to_scan: int = DEFAULT_DAYS_TO_SCAN
    calendar_days: int = 7
    request_timeout_seconds: float = 10.0

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA name."""
        try:
            pendulum.timezone(value)
        except (KeyError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("days_to_scan")
    @classmethod
    def validate_days_to_scan(cls, value: int) -> int:
        """Ensure the scan window is bounded."""
        if not MIN_DAYS_TO_SCAN <= value <= MAX_DAYS_TO_SCAN:
            raise ValueError(
                f"days_to_scan must be between {MIN_DAYS_TO_SCAN} and {MAX_DAYS_TO_SCAN}, got {value}"
            )
        return value

    @field_validator("calendar_days")
    @classmethod
    def validate_calendar_days(cls, value: int) -> int:
        """Ensure the calendar window is bounded."""
        if not 1 <= value <= MAX_CALENDAR_DAYS:
            raise ValueError(f"calendar_days must be between 1 and {MAX_CALENDAR_DAYS}, got {value}")
        return value

    @field_validator("request_timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        """Ensure provider calls are always bounded."""
        if value <= 0:
            raise ValueError("request_timeout_seconds must be greater than zero")
        return value


class CarefinitiSettings(BaseModel):
    """Deployment-wide Carefiniti settings."""
    url_template: Optional[str] = None
    location: Optional[str] = None


class OceanSettings(BaseModel):
    """Deployment-wide Ocean settings."""
    base_url: Optional[str] = None


class ProvidersConfig(BaseModel):
    """Per-provider settings."""
    carefiniti: CarefinitiSettings = Field(default_factory=CarefinitiSettings)
    ocean: OceanSettings = Field(default_factory=OceanSettings)


class ClinicEntry(BaseModel):
    """Clinic with its booking integration."""
    id: str
    name: str = ""
    provider_name: Optional[str] = None
    provider_account_id: Optional[str] = None
    provider_config: Dict[str, Any] = Field(default_factory=dict)
    days_to_scan: Optional[int] = None

    @field_validator("days_to_scan")
    @classmethod
    def validate_days_to_scan(cls, value: Optional[int]) -> Optional[int]:
        """Ensure a per-clinic scan window is bounded."""
        if value is not None and not MIN_DAYS_TO_SCAN <= value <= MAX_DAYS_TO_SCAN:
            raise ValueError(
                f"days_to_scan must be between {MIN_DAYS_TO_SCAN} and {MAX_DAYS_TO_SCAN}, got {value}"
            )
        return value

    def display_name(self) -> str:
        """Get display name."""
        return self.name or self.id

    def to_booking_config(self, defaults: DefaultsConfig) -> BookingConfig:
        """Build the booking configuration for this clinic."""
        return BookingConfig(
            provider_name=self.provider_name,
            provider_account_id=self.provider_account_id,
            provider_config=dict(self.provider_config),
            days_to_scan=self.days_to_scan or defaults.days_to_scan,
            clinic_id=self.id
        )


class AppConfig(BaseModel):
    """Application configuration."""
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    clinics: List[ClinicEntry] = Field(default_factory=list)

    @field_validator("clinics")
    @classmethod
    def validate_clinics(cls, value: List[ClinicEntry]) -> List[ClinicEntry]:
        """Ensure clinic ids are unique."""
        seen_ids: set[str] = set()
        for clinic in value:
            id_key = clinic.id.lower()
            if id_key in seen_ids:
                raise ValueError(f"Duplicate clinic id detected: {clinic.id}")
            seen_ids.add(id_key)
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def find_clinic(self, identifier: str) -> ClinicEntry | None:
        """Find a clinic by id or name (case-insensitive)."""
        key = identifier.lower()
        for clinic in self.clinics:
            if clinic.id.lower() == key or clinic.name.lower() == key:
                return clinic
        return None

    def resolve_clinics(self, identifiers: List[str]) -> List[ClinicEntry]:
        """
        Resolve clinic identifiers, or return every clinic when none are given.

        Raises:
            ValueError: If any identifier is unknown
        """
        if not identifiers:
            return list(self.clinics)

        resolved: List[ClinicEntry] = []
        unknown: List[str] = []

        for identifier in identifiers:
            clinic = self.find_clinic(identifier)
            if clinic is None:
                unknown.append(identifier)
            elif clinic not in resolved:
                resolved.append(clinic)

        if unknown:
            missing = ", ".join(sorted(set(unknown)))
            raise ValueError(f"Unknown clinic(s): {missing}. Check the clinics section of the config file.")

        return resolved


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
