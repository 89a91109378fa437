"""Publish-subscribe extension and JSON-RPC request handler."""