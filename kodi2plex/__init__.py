"""Import Kodi watch history into a Plex Media Server library."""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
