"""Boundary adapters: durable storage behind the relay core."""
