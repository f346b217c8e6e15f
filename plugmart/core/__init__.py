"""Core building blocks shared by the mutation pipelines."""
