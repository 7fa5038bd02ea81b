"""Collectible entities and their per-floor placement."""
