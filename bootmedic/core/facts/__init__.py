"""Fact collaborators consumed by the diagnosis core."""
