# Routes package init
"""
catscii — HTTP Routes Package
==============================

Route Inventory:
    - root.py:    GET /        (cat picture as ASCII-art HTML)
    - health.py:  GET /health  (liveness probe)
    - debug.py:   GET /panic   (deliberate crash; only with ENABLE_PANIC_ROUTE)

Routes stay thin: they open the request span, call CatArtService and turn
the outcome into a response.
"""
