"""
ZoneGuard - zone geofencing and risk assessment for tourist safety.
"""

__version__ = "0.1.0"
