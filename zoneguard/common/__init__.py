"""
Common utilities for ZoneGuard: geometry, caching and retry helpers.
"""
