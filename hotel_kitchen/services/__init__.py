"""
                        Services Module

Contains the kitchen business logic and its collaborators. Collaborators
follow the hybrid pattern: an in-memory implementation for development
and tests, and a real one for production.

Services:
    - store: order store and staff directory (in-memory / SQLAlchemy)
    - realtime: event publisher (in-memory / Redis pub/sub) and broadcaster
    - kitchen: state machine, queue builder, ETA, assignment, stats
"""
