"""Sanger chromatogram and alignment viewer."""

__version__ = "0.1.0"
