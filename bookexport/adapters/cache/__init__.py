"""Key-value cache adapters.

The rate limiter keeps its counters behind this interface: in-memory for a
single process, swappable for a shared store (e.g., Redis) when running
several workers.
"""
