"""HTTP middleware for the TwinLint API."""
