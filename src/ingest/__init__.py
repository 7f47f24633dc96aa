"""CMS ingestion pipeline.

This package authenticates against the CMS, fetches collections, and
resolves assets before committing nodes to the content sink.
"""
