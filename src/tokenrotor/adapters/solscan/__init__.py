"""Public interface for the Solscan adapter."""

from __future__ import annotations

from .client import SolscanFeed
from .schema import SolscanResponse, SolscanToken
from .translator import project_solscan

__all__ = ["SolscanFeed", "SolscanResponse", "SolscanToken", "project_solscan"]
