"""Shared configuration, types, persistence and infrastructure."""
