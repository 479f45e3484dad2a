"""Utility modules for the coursemarket API."""

from coursemarket.utils.timestamps import ensure_utc_aware, utc_now


__all__ = ["ensure_utc_aware", "utc_now"]
