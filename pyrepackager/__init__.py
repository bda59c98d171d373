"""Scan Python trees, describe packaging rules and resolve them into resources to embed."""

__version__ = "0.1.0"
__all__ = ["fsscan", "packaging", "resources", "rules"]