"""Interactive MongoDB migration using mongodump and mongorestore."""

__version__ = "1.0.0"
