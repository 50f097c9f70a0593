"""Optical dispensing calculators and AI-assisted analysis tools."""

__version__ = "1.0.0"
