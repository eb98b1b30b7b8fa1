"""modforge command-line interface."""
