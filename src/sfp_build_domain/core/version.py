"""Version information for SFP Build Domain."""

__version__ = "1.0.0"
