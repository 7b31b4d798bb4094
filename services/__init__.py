"""
services/ - Business Logic Layer
================================
Identifier allocation and the library-card approval workflow.
Services orchestrate repositories; they never build queries themselves.
"""
