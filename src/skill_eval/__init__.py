"""Scenario-based skill evaluation harness for Claude Code."""
