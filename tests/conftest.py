"""Shared pytest configuration."""

pytest_plugins = [
    "tests.fixtures.core",
    "tests.fixtures.services",
]
