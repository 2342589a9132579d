"""
CPR Trader - Intraday Central Pivot Range Trading Engine

Polls the latest completed bar for the day's instrument, compares it with the
precomputed daily pivot levels and drives a single-position state machine
against an order execution gateway.
"""

__version__ = "0.1.0"
__author__ = "CPR Trader Team"
