"""Core domain: access resolution and authentication."""
