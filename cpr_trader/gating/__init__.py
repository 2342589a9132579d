"""
Time gating module.

Classifies exchange-local time into the preparation and live windows and
holds the cadence predicates that decide when credentials are refreshed and
when a new bar is fetched.
"""
