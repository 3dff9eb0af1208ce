"""Core infrastructure: settings, logging, results and key-value storage."""
