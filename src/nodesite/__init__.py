"""nodesite — build-time content and data layer for the Node.js website."""

__version__ = "0.1.0"
