"""
Knaben Stremio add-on.

Resolves a movie or an episode into magnet streams scraped from an HTML
search table.
"""

__all__ = ["core", "models", "services", "sources", "web"]
