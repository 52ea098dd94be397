"""Archive packaging adapters.

The generator writes named byte entries through a small interface, so the
ZIP implementation can be replaced (or faked in tests) without touching it.
"""
