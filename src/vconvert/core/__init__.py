"""Core utilities shared across vconvert packages."""
