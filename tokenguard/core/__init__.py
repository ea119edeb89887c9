"""Cross-cutting concerns: settings, logging and the Flask integration."""
