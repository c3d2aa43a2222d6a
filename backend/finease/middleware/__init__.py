# Middleware package init
"""
FinEase Backend — Middleware Package
======================================

Middleware Chain (order matters!):
    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → Route Handler

    1. Request ID first, so every later log line can carry it
    2. Access log measures the full handling time, including auth and store calls
    3. CORS answers browser preflight requests before any route runs

Authentication is a route dependency rather than middleware, so the
unauthenticated routes (/, /health, docs) need no exclusion list.
"""
