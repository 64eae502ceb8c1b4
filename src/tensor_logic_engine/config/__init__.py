"""Configuration for the Tensor Logic Engine."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
