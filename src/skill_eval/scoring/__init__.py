"""Judge scoring for scenario outcomes."""
