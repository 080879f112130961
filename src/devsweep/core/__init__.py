"""Core components."""
