"""
Domain layer package.

Pure business logic for every bounded context. No framework
imports and no IO are allowed below this package.
"""
