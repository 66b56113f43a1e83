"""CLI command implementations for envsync."""
