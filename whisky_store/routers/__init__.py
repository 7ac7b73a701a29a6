"""
FastAPI routers grouped by domain.

``whiskies`` exposes the CRUD API over the configured store and ``pages``
serves the HTML welcome page. Both are included by ``whisky_store.app``.
"""
