"""Interpreter, reactions, registry, catalog and dispatch."""
