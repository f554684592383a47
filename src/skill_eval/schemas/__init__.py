"""Data model for scenarios, transcripts and evaluation results."""
