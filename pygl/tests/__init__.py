"""Test suite for the pygl package."""
