"""Peulot — AI-assisted Tzofim activity planning."""

__version__ = "1.0.0"
