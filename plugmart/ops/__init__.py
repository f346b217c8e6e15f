"""Registry operations: init, add, remove, update and prune."""
