"""External adapters: object storage and malware scanning."""
