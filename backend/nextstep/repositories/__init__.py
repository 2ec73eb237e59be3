"""
DynamoDB-backed repositories.

Each repository owns the key layout of one entity type in the main table and
returns plain dicts with storage-only attributes (pk/sk/gsi*) stripped.
"""
