# Middleware package init
"""
ParkShare Backend — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: generate the correlation ID used by logs and error bodies
    2. Logging: log method, path, status and duration under that ID
    3. GZip / CORS: Starlette's stock middleware

    Responses pass back through the chain in reverse, so the request ID
    header and the access log line both see the final status code.
"""
