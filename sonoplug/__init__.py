"""Helpers for cluster test plugins that report in the Sonobuoy results format."""

__version__ = "0.1.0"