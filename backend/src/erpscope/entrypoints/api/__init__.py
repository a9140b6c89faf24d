"""HTTP API for access resolution and grant management."""
