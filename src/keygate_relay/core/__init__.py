"""Configuration, logging and security helpers."""
