"""Output artifacts for extraction runs."""
