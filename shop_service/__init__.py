"""Order-and-inventory backend: catalog reads and atomic order placement."""

__version__ = "1.0.0"
