"""sitesmith -- chat-driven project scaffolding over a streaming HTTP API."""

__version__ = "0.1.0"
