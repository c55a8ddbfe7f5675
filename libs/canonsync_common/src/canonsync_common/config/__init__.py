"""Configuration for canonsync libraries."""

from canonsync_common.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
