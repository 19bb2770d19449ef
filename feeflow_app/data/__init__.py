"""
Market data module.

Immutable tick records and the bounded rolling store they live in.
"""
