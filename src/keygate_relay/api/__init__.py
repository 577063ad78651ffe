"""HTTP API for the keygate relay."""
