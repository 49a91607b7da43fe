"""Configuration package for the IPN gateway."""
from .settings import get_settings, Settings

__all__ = ["Settings", "get_settings"]
