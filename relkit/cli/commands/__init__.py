"""CLI commands, one module per pipeline stage."""
