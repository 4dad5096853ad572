"""Indexed cache of source objects."""

from rolesync.cache.indexer import Indexer

__all__ = ["Indexer"]
