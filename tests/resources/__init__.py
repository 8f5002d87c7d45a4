"""Modules loaded by tests and by the programs the tests produce."""
