# Services package init
"""
ParkShare Backend — Services Layer
====================================

What:  Business logic layer sitting between routes (HTTP) and database (persistence).
How:   Services accept a session or the Database handle plus validated
       request models, apply business rules, and return response models.

Service Inventory:
    - parking_filters: query parameters → SQLAlchemy predicate, ordering, page window
    - ParkingSpaceService: filtered search, owner listing, space CRUD
    - BookingService: booking CRUD with overlap and pricing rules
    - AuthService: registration and login

Store failures surface as DatabaseError; access and lookup failures as
AuthorizationError / NotFoundError. Nothing here retries.
"""
