"""Data models, eligibility rules and pagination metadata."""
