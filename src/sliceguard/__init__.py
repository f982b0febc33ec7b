"""Sliceguard: structural verification for vertical-slice Angular workspaces."""

__version__ = "0.1.0"
