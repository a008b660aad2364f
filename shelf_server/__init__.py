"""Personal LAN file browser for e-reader downloads."""

__version__ = "0.1.0"
