"""vinstall — build and install source packages into versioned directories."""

__version__ = "0.1.0"
