"""
Data models and contracts module.

Analysis results, distribution results and cumulative statistics.
"""
