"""HTTP API for the decision engine and action scheduler."""
