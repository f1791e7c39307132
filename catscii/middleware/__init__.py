# Middleware package init
"""
catscii — Middleware Package
=============================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Access Logging] → Route Handler

    1. Request ID: Correlation ID for log lines and the X-Request-ID header
    2. Access Logging: One structured line per request with status and duration

    Responses travel back through the chain in reverse, so the access log
    sees the final status code and the request ID header is set last.
"""
