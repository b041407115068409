"""
AI Notes Backend: Routes Package
=================================

Route Inventory:
    - summarize.py: POST /api/summarize           (Summarize Proxy, JSON)
    - pages.py:     GET  /  and the notes page form posts, POST /logout
    - auth.py:      GET/POST /login, POST /login/toggle
    - health.py:    GET  /health

Handlers stay thin: they read the request, call one client or service
method, and redirect or render. Page form posts answer 303 back to the page
they came from.
"""
