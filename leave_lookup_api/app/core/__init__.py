"""Configuration, logging, errors, middleware and bot verification."""
