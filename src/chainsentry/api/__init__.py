"""HTTP API for chainsentry."""
