"""Core utilities for Safar."""
