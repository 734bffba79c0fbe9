"""Command-line interface for rs_assoc."""
