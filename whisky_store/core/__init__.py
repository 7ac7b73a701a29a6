"""
Core utilities shared across the Whisky Store service.

This package hosts configuration helpers (env vars, paths, backend choice)
and the logging setup used by the entry point. Routers, services and
repositories depend on these primitives instead of reading os.environ.
"""
