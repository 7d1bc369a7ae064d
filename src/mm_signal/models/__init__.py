"""Wire and entity models."""
