"""AI insight generation over consolidated metrics."""
