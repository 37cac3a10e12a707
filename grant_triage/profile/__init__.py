"""Organization profile defaults."""

from .default_profile import build_default_profile

__all__ = ["build_default_profile"]
