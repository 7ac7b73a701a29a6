"""
High-level use cases for the Whisky Store service.

``bootstrap`` drives the process from cold start to ready-to-serve,
``seed`` holds the default catalog, and ``listener`` owns the HTTP socket
and the uvicorn server bound to it.
"""
