"""Player vitals, movement mode and the fixed-capacity inventory."""
