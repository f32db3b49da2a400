"""Transactional access to the materialized state tables."""
