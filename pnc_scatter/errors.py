from __future__ import annotations


class GraphSettingError(ValueError):
    """Raised when a graph settings document cannot be parsed."""
