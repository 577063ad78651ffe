"""Operator scripts for the keygate relay."""
