"""Job Manager company lifecycle services (auth, company, subscription)."""

__version__ = "1.0.0"
