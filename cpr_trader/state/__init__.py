"""
Position state module.

Single-position state machine: Flat or Open(direction, symbol), driven by
signals and executed against the order gateway.
"""
