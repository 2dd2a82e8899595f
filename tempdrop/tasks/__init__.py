"""
Celery Tasks

Thin task wrappers that delegate to application services.
"""
