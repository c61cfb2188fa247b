"""Small filesystem and identifier helpers."""
