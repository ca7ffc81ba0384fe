# windspire_console/__main__.py
"""Entry point for `python -m windspire_console`."""

from windspire_console.cli import app

if __name__ == "__main__":
    app()
