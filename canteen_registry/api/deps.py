"""Request-scoped dependencies for upstream clients."""

from fastapi import Request

from canteen_registry.services.company_directory import CompanyDirectory
from canteen_registry.services.geocoding import Geocoder


def get_company_directory(request: Request) -> CompanyDirectory:
    return request.app.state.company_directory


def get_geocoder(request: Request) -> Geocoder | None:
    return getattr(request.app.state, "geocoder", None)
