"""Core configuration and HTTP session helpers."""
