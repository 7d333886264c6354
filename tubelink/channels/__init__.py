"""Chat host adapters."""
