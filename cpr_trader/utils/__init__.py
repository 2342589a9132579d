"""
Utility functions module.

Time semantics:
- All window and cadence decisions use exchange-local wall-clock time
- Market data ranges are expressed in exchange-local minute resolution
"""
