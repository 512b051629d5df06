"""Domain layer — type reading, member descriptors, registry and errors.

This layer depends only on the standard library.
It must never import from services or config.
"""
