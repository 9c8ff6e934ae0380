"""Infrastructure layer - adapters for ports."""
