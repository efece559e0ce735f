"""Upstream NHL feed access."""

from .nhl import NHLFeedClient

__all__ = ["NHLFeedClient"]
