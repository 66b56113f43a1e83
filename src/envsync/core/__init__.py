"""Core parsing, hashing, diffing and discovery for envsync."""
