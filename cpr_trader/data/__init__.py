"""
Data model module.

Immutable records for the trading-day context, market bars and catalog
instruments.
"""
