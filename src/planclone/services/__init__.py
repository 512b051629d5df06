"""Service layer — the cloning engine.

Services may import from the domain and config layers.
"""
