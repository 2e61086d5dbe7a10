# Routes package init
"""
ParkShare Backend — API Routes Package
========================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - auth.py:            POST /api/auth/register, POST /api/auth/login,
                          GET  /api/auth/me
    - parking_spaces.py:  GET  /api/parking-spaces             (filtered search)
                          POST /api/parking-spaces             (owner/admin)
                          GET  /api/parking-spaces/owner/my-spaces
                          GET|PUT|DELETE /api/parking-spaces/{id}
    - bookings.py:        POST|GET /api/bookings, GET|PUT|DELETE /api/bookings/{id}
    - health.py:          GET  /health

Routes stay thin: pull data out of the request, call a service, and set
the status code. Business rules live in parkshare/services.
"""
