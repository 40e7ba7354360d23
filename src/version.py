# src/version.py — v1
"""Package version. Also the default fingerprint version tag."""

__version__ = "1.0.0"
