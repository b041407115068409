"""
AI Notes Backend: Middleware Package
=====================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [Session Gate] → Route

    1. Rate Limit: rejects excess summarize calls (API and notes page)
       before any other work
    2. Request ID: correlation id and session label for every log line
    3. Logging: one access line per request, with the resolved user and
       any gate redirect
    4. Session Gate: resolves the user and redirects across the
       public/protected boundary

    Responses unwind in reverse, so the request id header and the access log
    entry also cover responses produced by the gate.
"""
