"""
=============================================================================
FILESERVER - Static File HTTP/1.1 Server
=============================================================================

Serves a directory tree over HTTP with GET and HEAD:

    - files, typed by extension, streamed in chunks
    - generated HTML listings for directories
    - ETag and Last-Modified on every successful response
    - If-Match (412), If-None-Match and If-Modified-Since (304)
    - 400 for paths that climb out of the document root

=============================================================================
PACKAGE LAYOUT
=============================================================================

    fileserver/
    ├── __main__.py       CLI: python -m fileserver [ROOT] --port ...
    ├── config.py         ServerConfig (env + validation)
    ├── server.py         FileServer: transport + middleware + handler
    ├── core/             SocketServer, Connection, ThreadPool
    ├── http/             request parsing, response serialization,
    │                     status codes, MIME table, HTTP dates
    ├── middleware/       pipeline + access logging
    ├── handlers/         StaticFileHandler (the per-request pipeline)
    └── static/           resolver, validators, conditional evaluation,
                          listing, response builder

The static package is the part that decides responses; it knows nothing
about sockets and can be driven directly:

    from fileserver.handlers import serve_static

    handler = serve_static("./public")
    response = handler.serve("GET", "/example.txt", {})

=============================================================================
"""

__version__ = "1.0.0"

from .server import FileServer, create_server
from .config import ServerConfig

__all__ = ["FileServer", "create_server", "ServerConfig", "__version__"]
