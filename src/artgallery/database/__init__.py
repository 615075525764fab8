"""
Database module for the gallery backend
"""

from .connection import Database, create_engine_for_url, to_async_url

__all__ = ["Database", "create_engine_for_url", "to_async_url"]
