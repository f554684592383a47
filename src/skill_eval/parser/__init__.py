"""Transcript parsing and skill extraction."""
