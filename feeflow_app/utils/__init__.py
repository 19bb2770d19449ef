"""
Utility functions module.

Time helpers and the explicit TTL cache shared by the price feed and the
pool state lookup.
"""
