"""Chain reads and block-explorer metadata fetching."""
