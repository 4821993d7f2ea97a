"""
News API Package.

FastAPI application serving the stored article batch and the
refresh/admin actions.
"""
