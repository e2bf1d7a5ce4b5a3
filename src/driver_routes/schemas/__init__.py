"""Schemas for the HTTP API."""
