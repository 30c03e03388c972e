"""Issue-tracker record adapters."""
