"""Air quality proxy for the Open-Meteo air-quality API."""

__version__ = "0.1.0"
