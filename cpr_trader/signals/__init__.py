"""
Signal evaluation module.

Pure CPR and pivot-band signal evaluation for the latest bar.
"""
