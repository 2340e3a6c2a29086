"""HTTP API for the Parley messaging core."""
