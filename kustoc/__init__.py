"""Kustoc CRM core: persistence, ID generation, integrity rules and entity services."""

__version__ = "1.0.0"
