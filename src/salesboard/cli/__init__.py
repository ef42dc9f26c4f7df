"""Command line interface for salesboard."""
