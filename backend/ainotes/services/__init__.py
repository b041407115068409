# Services package init
"""
AI Notes Backend: Services Layer
=================================

What:  Clients for the two external collaborators.

Service Inventory:
    - DataServiceClient: Supabase row CRUD + identity (data_service.py)
    - SummaryProvider (abstract): contract behind POST /api/summarize
    - GroqSummaryService: OpenAI-compatible chat-completion implementation

All of them are constructed in the application lifespan and stored on
`app.state`; routes and middleware receive them from there, never from
module-level singletons.
"""
