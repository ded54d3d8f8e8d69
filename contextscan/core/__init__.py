"""Core models, types and utilities for contextscan."""
