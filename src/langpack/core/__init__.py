"""Core domain: versions, constraints, and dependency resolution."""
