"""Domain layer (business logic and domain models).

Domain modules do not depend on the UI or on storage. They take collections
in and hand new collections back; the services layer decides what to persist.
"""
