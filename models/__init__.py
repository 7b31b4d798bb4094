"""
models/ - Entity Declarations
=============================
Field projection between application records and store rows, and the
per-entity read lists built on it.
"""
