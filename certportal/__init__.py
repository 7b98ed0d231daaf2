"""Certificate issuance portal backend."""
