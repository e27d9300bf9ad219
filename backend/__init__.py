"""ReelIndex backend services."""
