"""Resource discard and gain selection for a settlers board game client."""

__version__ = "0.1.0"
