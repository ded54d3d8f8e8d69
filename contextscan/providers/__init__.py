"""Storage providers for contextscan."""
