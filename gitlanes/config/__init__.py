"""Configuration for gitlanes"""

from gitlanes.config.settings import Settings

__all__ = ["Settings"]
