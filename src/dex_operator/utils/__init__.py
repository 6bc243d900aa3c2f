"""Utility functions for the Dex Operator."""
