"""Identity/credential backend adapters."""
