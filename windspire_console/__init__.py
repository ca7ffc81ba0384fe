# windspire_console/__init__.py
"""
windspire-console: batch content generation and duplicate reconciliation.

Drives a rate-limited generation service one item at a time and keeps the
resulting content catalog free of duplicate titles.
"""

__version__ = "0.4.0"
