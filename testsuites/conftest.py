"""
================================================================================
Root Pytest Configuration
================================================================================

This module provides the pytest configuration for the test suites.
It registers common markers and tags tests by directory.

================================================================================
"""

import pytest


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for deployment"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )

    # Test type markers
    config.addinivalue_line(
        "markers", "unit: Fast tests against fake or mocked backends"
    )
    config.addinivalue_line(
        "markers", "e2e: Tests driving a real browser"
    )

    # Component markers
    config.addinivalue_line(
        "markers", "locator: Locator parsing and resolution tests"
    )
    config.addinivalue_line(
        "markers", "recorder: Step queue tests"
    )


def pytest_collection_modifyitems(config, items):
    """Tag collected tests by the directory and module they live in."""
    for item in items:
        path = str(item.fspath)

        if "unit" in path:
            item.add_marker(pytest.mark.unit)

        if "test_locator" in path or "test_resolver" in path:
            item.add_marker(pytest.mark.locator)

        if "test_recorder" in path or "test_actor" in path:
            item.add_marker(pytest.mark.recorder)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "stepchain - semantic locators and step recorder",
        "=" * 60,
        "",
    ]
