"""Celery background tasks: processing runs and menu item re-indexing."""
