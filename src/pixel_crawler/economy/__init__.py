"""Pickups, resource tallies and selling for experience."""
