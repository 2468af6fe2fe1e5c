"""Request, response and document models."""
