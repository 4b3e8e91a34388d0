"""I/O layer: command execution and the procedure invocation facade."""
