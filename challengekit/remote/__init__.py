"""Clients for challenge collaborators that live in other services."""

from .api import CompetitionServiceClient

__all__ = ["CompetitionServiceClient"]
