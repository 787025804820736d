"""Test fixture package for kolours.

Contains in-memory cache, lock manager and content store backends.
"""
