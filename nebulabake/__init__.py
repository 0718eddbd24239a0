"""Bake data formats and CPU bake steps for navigation meshes, probes and visibility sets."""

__version__ = "0.1.0"