"""Schemas for company directory records."""

from typing import Optional

from pydantic import BaseModel, Field


class CompanyAddress(BaseModel):
    street: str
    postal_code: str
    city: str
    municipality: str = ""
    municipality_number: str = ""


class Company(BaseModel):
    """A directory record as the core needs it."""

    org_id: str = Field(..., description="Organisation number")
    name: str
    address: Optional[CompanyAddress] = None


class CompanySearchHit(BaseModel):
    org_id: str
    name: str
    address_text: str
