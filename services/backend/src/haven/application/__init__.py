"""Application layer: commands, queries and services orchestrating the domain."""
