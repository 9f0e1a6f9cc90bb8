"""
Unit Tests Package.

This package contains tests that exercise individual components
in isolation, against mocks or the fake server.
"""
