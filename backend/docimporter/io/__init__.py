"""Re-readable content streams with memory→disk spillover."""

from docimporter.io.stream import CachedInputStream, CachedOutputStream, CachedStreamFactory

__all__ = ["CachedInputStream", "CachedOutputStream", "CachedStreamFactory"]
