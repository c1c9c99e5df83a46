"""HTTP transport for the database REST API.

Classes:
    :class:`HttpTransport` -- ``send_request`` over :class:`httpx.AsyncClient`.
    :class:`TransportResponse` -- raw ``status`` / ``body`` pair.
    :class:`Transport` -- protocol for injecting an alternative transport.
"""

from rtdb_cache.client.transport import HttpTransport, Transport, TransportResponse

__all__ = ["HttpTransport", "Transport", "TransportResponse"]
