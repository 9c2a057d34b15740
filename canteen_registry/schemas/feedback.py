"""Schemas for site feedback."""

from pydantic import BaseModel


class FeedbackRequest(BaseModel):
    message: str
