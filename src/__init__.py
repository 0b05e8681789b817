"""Glow Pay Gateway."""
