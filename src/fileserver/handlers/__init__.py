"""
Request handlers.

    StaticFileHandler / serve_static()
        GET/HEAD for files and directory listings under the document root,
        with ETag / Last-Modified validation.

    from fileserver.handlers import serve_static

    handler = serve_static("/var/www", etag_policy="content")
    response = handler.handle(request)
"""

from .static import StaticFileHandler, serve_static

__all__ = [
    "StaticFileHandler",
    "serve_static",
]
