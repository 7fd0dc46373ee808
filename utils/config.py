# =============================================================================
# utils/config.py - Configuration management
# =============================================================================

import os
from typing import Optional, List
from dotenv import load_dotenv


_TRUE_VALUES = {"1", "true", "yes", "on"}


class Config:
    """Configuration management"""

    def __init__(self):
        load_dotenv()

    @property
    def ad_server(self) -> Optional[str]:
        return os.getenv("AD_SERVER")

    @property
    def ad_username(self) -> Optional[str]:
        return os.getenv("AD_USERNAME")

    @property
    def ad_password(self) -> Optional[str]:
        return os.getenv("AD_PASSWORD")

    @property
    def ad_domain(self) -> Optional[str]:
        """Domain name or search base; BASE_DN is accepted as an alias"""
        return os.getenv("AD_DOMAIN") or os.getenv("BASE_DN")

    @property
    def use_ssl(self) -> bool:
        return (os.getenv("AD_USE_SSL") or "").strip().lower() in _TRUE_VALUES

    @property
    def page_size(self) -> int:
        return self._get_int("AD_PAGE_SIZE", 1000)

    @property
    def connect_timeout(self) -> Optional[int]:
        value = self._get_int("AD_CONNECT_TIMEOUT", 0)
        return value or None

    def validate_ad_config(self) -> bool:
        """Validate that all required AD configuration is present"""
        required = [self.ad_server, self.ad_username, self.ad_password]
        return all(required)

    def get_missing_ad_vars(self) -> List[str]:
        """Get list of missing AD configuration variables"""
        vars_and_names = [
            (self.ad_server, "AD_SERVER"),
            (self.ad_username, "AD_USERNAME"),
            (self.ad_password, "AD_PASSWORD")
        ]
        return [name for var, name in vars_and_names if not var]

    @staticmethod
    def _get_int(name: str, default: int) -> int:
        value = os.getenv(name)
        if not value:
            return default
        try:
            return int(value)
        except ValueError:
            raise ValueError(f"{name} must be an integer, got {value!r}")
