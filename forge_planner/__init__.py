"""FORGE Planner - personalized training program generation and scheduling."""

__version__ = "0.1.0"
