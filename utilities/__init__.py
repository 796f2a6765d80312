"""
Shared utilities for the catalog application.
"""
