"""INSPIRE response schema, adapters and HTTP clients."""
