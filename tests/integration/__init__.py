"""Integration tests for the wiki store.

These tests run the page store, the git backend and the CLI against real git
repositories created in temporary directories. They require the git
executable on PATH.

Use pytest marks to run only these suites:
    pytest -m integration
"""
