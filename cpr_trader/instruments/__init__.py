"""
Instrument catalog module.

Daily-refreshed option contract catalog and nearest-expiry resolution.
"""
