"""Continuous-integration watcher: polls service repositories and runs their build commands."""
