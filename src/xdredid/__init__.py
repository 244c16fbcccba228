from __future__ import annotations

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "app",
    "edid",
    "errors",
    "pipeline",
    "settings",
    "tools",
    "xorg",
]
