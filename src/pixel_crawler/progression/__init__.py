"""Experience table and level derivation."""
