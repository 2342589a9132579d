"""
Order execution module.

Gateway abstraction plus the HTTP (broker API) and paper implementations.
"""
