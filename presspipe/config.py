"""Configuration management for the publishing pipeline.

This module provides configuration profile management, including creating,
deleting, and switching between upstream CMS instances, plus environment
variable overrides.
"""

import os
import tomllib
import json
import re
from pathlib import Path
from typing import Dict, List, Optional, Any
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator, HttpUrl

from .exceptions import ConfigError

DEFAULT_API_PATH = "/wp-json/wp/v2"

# Closed editorial category set offered by the authoring UI
DEFAULT_CATEGORIES = [
    "daily-news",
    "charity",
    "sports",
    "woman",
    "political-news",
]

ENV_API_URL = "PRESSPIPE_API_URL"
ENV_TOKEN = "PRESSPIPE_TOKEN"
ENV_CONFIG_DIR = "PRESSPIPE_CONFIG_DIR"


class Profile(BaseModel):
    """Configuration profile for an upstream CMS instance."""

    name: str = Field(..., description="Profile name")
    url: HttpUrl = Field(..., description="CMS site URL")
    api_path: str = Field(default=DEFAULT_API_PATH, description="REST API root path")
    timeout: int = Field(default=30, description="Request timeout in seconds")
    categories: List[str] = Field(
        default_factory=lambda: list(DEFAULT_CATEGORIES),
        description="Category slugs authors may pick from",
    )
    concurrent_taxonomy: bool = Field(
        default=True,
        description="Look up the category while the tag pass runs",
    )
    active: bool = Field(default=False, description="Whether this is the active profile")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate profile name is usable as a file name."""
        if not re.match(r"^[A-Za-z0-9_.-]+$", v):
            raise ValueError("Profile name may only contain letters, digits, '.', '_' and '-'")
        return v

    @field_validator("api_path")
    @classmethod
    def validate_api_path(cls, v: str) -> str:
        """Normalize the API path to a leading slash and no trailing slash."""
        v = v.strip().strip("/")
        if not v:
            raise ValueError("API path cannot be empty")
        return f"/{v}"

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate timeout value."""
        if v <= 0:
            raise ValueError("Timeout must be greater than 0")
        if v > 300:  # 5 minutes max
            raise ValueError("Timeout cannot exceed 300 seconds")
        return v

    @field_validator("categories")
    @classmethod
    def validate_categories(cls, v: List[str]) -> List[str]:
        """Lowercase slugs and drop blanks and duplicates."""
        slugs: List[str] = []
        for slug in v:
            slug = slug.strip().lower()
            if slug and slug not in slugs:
                slugs.append(slug)
        return slugs

    @property
    def api_base(self) -> str:
        """Full REST API base URL, e.g. https://example.com/wp-json/wp/v2."""
        return f"{str(self.url).rstrip('/')}{self.api_path}"

    def model_dump(self, **kwargs: Any) -> Dict[str, Any]:
        """Convert profile to dictionary with proper string conversion."""
        data = super().model_dump(**kwargs)
        # Convert HttpUrl to string and remove trailing slash for consistency
        if "url" in data:
            data["url"] = str(data["url"]).rstrip("/")
        return data


class ConfigManager:
    """Manages configuration profiles for upstream CMS instances."""

    def __init__(self, config_dir: Optional[Path] = None) -> None:
        """Initialize configuration manager.

        Args:
            config_dir: Configuration directory path. If None, uses default.
        """
        env_dir = os.getenv(ENV_CONFIG_DIR)
        self.config_dir = config_dir or (Path(env_dir) if env_dir else Path.home() / ".presspipe")
        self.config_file = self.config_dir / "config.toml"
        self.profiles_dir = self.config_dir / "profiles"

        self._profiles: Dict[str, Profile] = {}
        self._active_profile: Optional[str] = None
        self._load_config()

    def create_profile(
        self,
        name: str,
        url: str,
        api_path: str = DEFAULT_API_PATH,
        timeout: int = 30,
        categories: Optional[List[str]] = None,
        concurrent_taxonomy: bool = True,
    ) -> Profile:
        """Create a new configuration profile.

        The first profile created becomes the active one.

        Args:
            name: Profile name
            url: CMS site URL
            api_path: REST API root path
            timeout: Request timeout in seconds
            categories: Allowed category slugs (defaults to the editorial set)
            concurrent_taxonomy: Whether category lookup runs beside the tag pass

        Returns:
            Created profile

        Raises:
            ConfigError: If profile creation fails
        """
        if name in self._profiles:
            raise ConfigError(f"Profile '{name}' already exists")

        parsed_url = urlparse(url)
        if not parsed_url.scheme or not parsed_url.netloc:
            raise ConfigError("Invalid URL format")

        try:
            profile = Profile(
                name=name,
                url=url,
                api_path=api_path,
                timeout=timeout,
                categories=categories if categories is not None else list(DEFAULT_CATEGORIES),
                concurrent_taxonomy=concurrent_taxonomy,
            )
        except ValueError as e:
            raise ConfigError(f"Failed to create profile: {e}")

        self._profiles[name] = profile
        if self._active_profile is None:
            self._active_profile = name
            profile.active = True

        self._save_profile(profile)
        self._save_config()
        return profile

    def get_profile(self, name: str) -> Profile:
        """Get a specific profile by name.

        Raises:
            ConfigError: If profile doesn't exist
        """
        if name not in self._profiles:
            raise ConfigError(f"Profile '{name}' not found")

        return self._profiles[name]

    def list_profiles(self) -> List[Dict[str, Any]]:
        """List all available profiles.

        Returns:
            List of profile configurations
        """
        profiles = []
        for profile in self._profiles.values():
            profile_dict = profile.model_dump()
            profile_dict["active"] = profile.name == self._active_profile
            profiles.append(profile_dict)

        return profiles

    def set_active_profile(self, name: str) -> None:
        """Set the active profile.

        Raises:
            ConfigError: If profile doesn't exist
        """
        if name not in self._profiles:
            raise ConfigError(f"Profile '{name}' not found")

        for profile in self._profiles.values():
            profile.active = profile.name == name

        self._active_profile = name
        self._save_config()

    def get_active_profile(self) -> Optional[str]:
        """Get the name of the active profile, or None."""
        return self._active_profile

    def get_default_profile(self) -> Profile:
        """Get the default (active) profile.

        Raises:
            ConfigError: If no default profile is set
        """
        if not self._active_profile:
            raise ConfigError("No default profile set")

        return self._profiles[self._active_profile]

    def delete_profile(self, name: str) -> None:
        """Delete a configuration profile.

        Raises:
            ConfigError: If profile doesn't exist
        """
        if name not in self._profiles:
            raise ConfigError(f"Profile '{name}' not found")

        if self._active_profile == name:
            self._active_profile = None

        del self._profiles[name]

        profile_file = self.profiles_dir / f"{name}.json"
        if profile_file.exists():
            profile_file.unlink()

        self._save_config()

    def has_environment_config(self) -> bool:
        """Check if environment variables provide sufficient configuration."""
        return bool(os.getenv(ENV_API_URL))

    def get_environment_profile(self) -> Profile:
        """Build a temporary profile from environment variables.

        Raises:
            ConfigError: If PRESSPIPE_API_URL is not set or invalid
        """
        env_url = os.getenv(ENV_API_URL)
        if not env_url:
            raise ConfigError(f"{ENV_API_URL} environment variable is required")

        try:
            return Profile(name="environment", url=env_url, active=True)
        except ValueError as e:
            raise ConfigError(f"Invalid {ENV_API_URL}: {e}")

    def resolve_profile(self, name: Optional[str] = None) -> Profile:
        """Pick the profile to run with.

        Order: the named profile, the active profile, then the environment.
        A PRESSPIPE_API_URL set alongside a stored profile overrides its url.

        Raises:
            ConfigError: If nothing is configured
        """
        if name:
            profile = self.get_profile(name)
        elif self._active_profile:
            profile = self.get_default_profile()
        elif self.has_environment_config():
            return self.get_environment_profile()
        else:
            raise ConfigError(
                "No CMS configuration found. Please either:\n"
                "  1. Run 'presspipe config init' to set up a profile, or\n"
                f"  2. Set the {ENV_API_URL} environment variable"
            )

        env_url = os.getenv(ENV_API_URL)
        if env_url:
            try:
                profile = Profile(**{**profile.model_dump(), "url": env_url})
            except ValueError as e:
                raise ConfigError(f"Invalid {ENV_API_URL}: {e}")
        return profile

    def _load_config(self) -> None:
        """Load configuration from file."""
        if not self.config_file.exists():
            return

        try:
            with open(self.config_file, "rb") as f:
                config_data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(f"Failed to load configuration: {e}")

        active = config_data.get("active_profile")
        self._active_profile = active or None

        for profile_file in sorted(self.profiles_dir.glob("*.json")):
            try:
                with open(profile_file, "r") as f:
                    profile_data = json.load(f)
                profile = Profile(**profile_data)
            except (OSError, ValueError) as e:
                raise ConfigError(f"Failed to load profile {profile_file.name}: {e}")
            profile.active = profile.name == self._active_profile
            self._profiles[profile.name] = profile

        if self._active_profile and self._active_profile not in self._profiles:
            self._active_profile = None

    def _save_config(self) -> None:
        """Save configuration to file."""
        # tomllib is read-only, so the file is written by hand
        active = f'"{self._active_profile}"' if self._active_profile else '""'
        toml_content = f"""# presspipe configuration
version = "1.0"
active_profile = {active}
"""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, "w") as f:
                f.write(toml_content)
        except OSError as e:
            raise ConfigError(f"Failed to save configuration: {e}")

    def _save_profile(self, profile: Profile) -> None:
        """Save individual profile to file."""
        try:
            self.profiles_dir.mkdir(parents=True, exist_ok=True)
            profile_file = self.profiles_dir / f"{profile.name}.json"
            with open(profile_file, "w") as f:
                json.dump(profile.model_dump(), f, indent=2, default=str)
        except OSError as e:
            raise ConfigError(f"Failed to save profile: {e}")
