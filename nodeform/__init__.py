"""nodeform -- ledger node deployment assembly and public API tracking."""

__version__ = "0.4.0"
