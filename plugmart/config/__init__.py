"""Registry and plugin manifest schemas and parsing."""
