"""Configuration, database and error handling."""
