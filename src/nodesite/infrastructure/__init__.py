"""Infrastructure layer — filesystem access, dataset fetchers, and the Site container.

Depends on the domain layer, never the reverse.
"""
