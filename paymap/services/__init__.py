"""Services package: normalization, record storage, rate limiting, and reconciliation."""
