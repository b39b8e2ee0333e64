"""Shared pytest fixtures for the CMS data layer tests."""
