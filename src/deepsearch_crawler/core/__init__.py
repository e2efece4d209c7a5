"""Cross-cutting infrastructure: logging configuration and exceptions."""
