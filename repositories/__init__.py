"""
repositories/ - Data Access Layer
==================================
One repository per entity type, all built on `BaseRepository`.
Repositories take and return plain dicts keyed by application field
names; store column names never leave this layer.
"""
