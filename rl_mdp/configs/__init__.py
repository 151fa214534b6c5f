"""Bundled gin configurations, one per algorithm."""
