"""Core utilities shared by the subpackages."""
