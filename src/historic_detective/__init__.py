"""Historic Detective: resolve a building from text, an image, or a map point."""

__version__ = "0.1.0"
