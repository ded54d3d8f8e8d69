"""Database providers for contextscan."""
