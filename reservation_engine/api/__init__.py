"""HTTP API of the reservation engine."""
