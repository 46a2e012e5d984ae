"""
Shared tournament domain code, free of Flask and database imports.

- Lifecycle state model and visibility predicates
- Error kinds raised by every service
- Event envelope and redis publishing
"""
