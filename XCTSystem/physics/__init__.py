"""Physical constants used by sources, models and encoders."""

from . import constants

__all__ = ['constants']
