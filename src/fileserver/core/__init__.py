"""
=============================================================================
CORE MODULE - Networking and Concurrency
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   SocketServer ──accept()──► Connection ──submit()──► ThreadPool    │
    │   (listening socket)         (one client)            (workers run   │
    │                                                       FileServer's  │
    │                                                       request loop) │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    socket_server.py  bind / listen / accept loop, signal handling
    connection.py     buffered reads, whole or streamed writes, close
    thread_pool.py    bounded task queue and worker threads

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool, Worker, WorkerState

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "ThreadPool",
    "Worker",
    "WorkerState",
]
