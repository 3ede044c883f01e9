"""Remote clients for the vault listing and info endpoints."""
