"""Event processors and per-chain workers."""
