"""
Test Suite for the Mattermost Ping Bot.

Structure:
    tests/
    ├── conftest.py          # Shared fixtures, fake server and websocket
    ├── unit/                # Component tests
    │   ├── test_models.py
    │   ├── test_settings.py
    │   ├── test_mattermost_client.py
    │   ├── test_websocket_client.py
    │   ├── test_bootstrap.py
    │   ├── test_responder.py
    │   ├── test_dispatcher.py
    │   └── test_healthcheck.py
    └── integration/         # Whole-bot tests against the fakes
        └── test_bot.py

Run tests:
    pytest tests/                    # All tests
    pytest tests/unit/               # Unit tests only
    pytest tests/integration/        # Integration tests only
    pytest tests/ -v                 # Verbose output
"""
