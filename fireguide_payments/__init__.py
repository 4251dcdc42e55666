"""Fire Guide booking payment and payout engine."""

__version__ = "0.1.0"
