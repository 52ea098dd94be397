"""Rate limiting adapters.

The HTTP layer depends on the abstract limiter only; the counter storage is a
cache adapter, so moving the counters to a shared store does not touch the
API layer.
"""
