"""I/O: byte streams and JSON text."""
