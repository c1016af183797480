"""Configuration module for the identity admin client."""
from .settings import AppConfig, load_settings

__all__ = ["AppConfig", "load_settings"]
