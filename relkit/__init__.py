"""relkit: build classification and release publication for multi-platform binaries."""

__version__ = "0.1.0"
