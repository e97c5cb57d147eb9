"""
Observability for ZoneGuard: logging, metrics and health endpoints.
"""
