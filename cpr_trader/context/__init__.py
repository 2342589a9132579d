"""
Per-trading-day session context module.
"""
