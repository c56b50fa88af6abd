"""Pytest configuration and shared fixtures."""

import pytest


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test requiring external services"
    )
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture
def export_payload():
    """Small camelCase export as produced by the Discord exporter."""
    return {
        "guild": {"id": "1", "name": "HW Hackers"},
        "channel": {"id": "2", "name": "general"},
        "messages": [
            {
                "id": "100",
                "type": "Default",
                "timestamp": "2025-01-05T10:00:00+00:00",
                "content": "Found a UART header on the router board",
                "author": {"id": "u1", "name": "alice"},
                "reference": None,
            },
            {
                "id": "101",
                "type": "Reply",
                "timestamp": "2025-01-05T10:01:00+00:00",
                "content": "Which baud rate?",
                "author": {"id": "u2", "name": "bob"},
                "reference": {"messageId": "100"},
            },
            {
                "id": "102",
                "type": "Default",
                "timestamp": "2025-01-05T10:03:00+00:00",
                "content": "115200, got a root shell",
                "author": {"id": "u1", "name": "alice"},
            },
            {
                "id": "103",
                "type": "Default",
                "timestamp": "2025-01-05T15:00:00+00:00",
                "content": "anyone up for lunch?",
                "author": {"id": "u3", "name": "carol"},
            },
        ],
    }
