"""JSON-RPC over HTTP: request wrapper, response helpers and a threaded server."""