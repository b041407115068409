"""
AI Notes Backend: Application Package
======================================

Layers:
    ┌─────────────────────────────────────┐
    │  routes/       HTTP handlers         │  ← thin: parse form/JSON, redirect
    ├─────────────────────────────────────┤
    │  client/       Notes Client, Auth    │  ← page state, actions, rendering
    │                Form, registry        │
    ├─────────────────────────────────────┤
    │  services/     Data Service and      │  ← the only code that speaks to
    │                Summarization clients │    the external collaborators
    ├─────────────────────────────────────┤
    │  schemas/      Pydantic models       │
    └─────────────────────────────────────┘

middleware/ wraps every request (rate limit, request id, access log,
Session Gate).
"""

__version__ = "1.0.0"
