"""Public interface for the Moralis adapter."""

from __future__ import annotations

from .client import MoralisFeed
from .schema import MoralisResponse, MoralisToken
from .translator import project_moralis

__all__ = ["MoralisFeed", "MoralisResponse", "MoralisToken", "project_moralis"]
