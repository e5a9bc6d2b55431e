"""Public interface for the BirdEye adapter."""

from __future__ import annotations

from .client import BirdEyeFeed
from .schema import BirdEyeResponse, BirdEyeToken
from .translator import project_birdeye

__all__ = ["BirdEyeFeed", "BirdEyeResponse", "BirdEyeToken", "project_birdeye"]
