"""Configuration module"""
from functools import lru_cache
from .settings import ClientConfig, Settings


@lru_cache()
def get_settings():
    """Get cached settings instance"""
    return Settings()


__all__ = ["ClientConfig", "Settings", "get_settings"]
