"""Configuration, logging, errors, and signing shared across the app."""
