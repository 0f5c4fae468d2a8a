"""Test fixtures for wiki store tests.

This module provides test fixtures for:
- Sample pages (titles and documents, including awkward titles)
- Wiki repositories with history built by plain git commands
"""
