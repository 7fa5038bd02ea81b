"""Game state engine: lifecycle transitions, per-frame simulation and the headless loop."""
