"""Edge proxy for music metadata APIs and Kuwo media hosts."""
