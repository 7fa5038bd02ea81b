"""Versioned local persistence: save records, storage backends, autosave and statistics."""
