"""API key loading/rotation and the authenticated HTTP session."""
