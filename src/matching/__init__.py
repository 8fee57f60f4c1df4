"""Core ride matching: driver registry, nearest-driver matching and path cost queries."""
