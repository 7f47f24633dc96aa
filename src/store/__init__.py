"""Storage layer.

This package holds the on-disk asset cache and the content sink that
receives collections and nodes.
"""
