"""Ride records, lifecycle transitions and fund movement."""
