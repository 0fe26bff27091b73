"""
                Hotel Kitchen Order Service

Kitchen order lifecycle and real-time task queue for hotel restaurants
and room service, with hybrid in-memory / PostgreSQL + Redis architecture.

Version: 1.0.0
"""

__version__ = "1.0.0"
