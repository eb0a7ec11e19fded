"""Application settings loading."""

from .app import AppSettings, get_settings, parse_duration


__all__ = ["AppSettings", "get_settings", "parse_duration"]
