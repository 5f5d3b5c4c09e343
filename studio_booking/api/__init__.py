"""HTTP adapter over the booking engine."""
