"""Continuous circle-vs-grid collision and proximity door handling."""
