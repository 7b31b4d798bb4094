"""
db/ - Storage Layer
===================
PostgreSQL connection pool, the table/filter/payload store client,
schema initialization and the blob storage adapter.
This layer is the lowest in the architecture and knows nothing about
entity field names.
"""
