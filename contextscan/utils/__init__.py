"""Utility modules for contextscan."""
