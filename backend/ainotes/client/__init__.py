"""
AI Notes Backend: Notes Client Package
=======================================

State (state.py), pure transitions (actions.py), the Store that applies
them (store.py), controllers (notes_client.py, auth_form.py), the rendering
layer (view.py) and the per-browser-session registry (registry.py).
"""
