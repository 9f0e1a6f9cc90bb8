"""
Integration Tests Package.

This package contains tests that run the whole bot against the fake
Mattermost server and websocket.

Tests verify:
- Bootstrap through reply with real components
- Exit codes of the entry point
- Shutdown on interrupt
"""
