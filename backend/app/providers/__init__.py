"""Providers — clients for third-party services (identity verification)."""
