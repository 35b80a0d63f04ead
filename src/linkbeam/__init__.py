"""LinkBeam - send a link from your phone to a paired desktop."""

__version__ = "0.1.0"
