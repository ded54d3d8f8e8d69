"""Scan pipeline services: traversal, statistics, tree assembly and orchestration."""
