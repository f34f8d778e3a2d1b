"""Snapshot → release → next-snapshot version cycle, driven by git."""
