"""Building blocks for JSON-RPC 2.0 servers: typed methods, pub-sub, validation and transports."""

__version__ = "0.1.0"