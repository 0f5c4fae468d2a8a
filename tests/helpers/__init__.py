"""Shared helpers for wiki store tests."""
