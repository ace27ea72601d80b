"""Candidate screening pipeline for scraped LinkedIn profiles."""

__version__ = "0.1.0"

__all__ = ["__version__"]
