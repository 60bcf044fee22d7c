"""Coordination core of the superpixel guided labeling workflow."""

__version__ = "0.1"
