"""HTTP API for the driver client."""
