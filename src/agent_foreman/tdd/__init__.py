"""Test-driven development guidance."""
