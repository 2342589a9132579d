"""
Market data module.

Historical bar retrieval from the broker's market data API.
"""
