"""Static chord voicing reference data."""
