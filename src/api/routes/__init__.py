"""FastAPI route modules.

Exports all route modules for inclusion in the main application.
"""

from src.api.routes import shipping_method

__all__ = [
    "shipping_method",
]
