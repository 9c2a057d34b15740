"""Expose API endpoint routers."""

from canteen_registry.api.endpoints import canteens, companies, feedback, reviews

__all__ = ["canteens", "companies", "feedback", "reviews"]
