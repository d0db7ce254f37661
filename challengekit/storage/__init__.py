"""Persistence backends for the challenge engine."""

from .sql import SqlCompetitionTrackStore, SqlQuizStore

__all__ = ["SqlCompetitionTrackStore", "SqlQuizStore"]
