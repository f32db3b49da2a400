"""Selector extraction and access-control role inference."""
