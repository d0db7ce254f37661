"""Columns shared by every competitor registration table."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from ..challenge.types import CompetitorInfo


class CompetitorDetailsMixin:
    """Registration details stored verbatim from :class:`CompetitorInfo`."""

    account: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    phone: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    identity: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    province: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    detail: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def apply_info(self, info: CompetitorInfo) -> None:
        self.account = info.account
        self.name = info.name
        self.city = info.city
        self.email = info.email
        self.phone = info.phone
        self.identity = info.identity
        self.province = info.province
        self.detail = dict(info.detail) if info.detail else None

    def to_info(self) -> CompetitorInfo:
        return CompetitorInfo(
            account=self.account,
            name=self.name,
            city=self.city,
            email=self.email,
            phone=self.phone,
            identity=self.identity,
            province=self.province,
            detail=dict(self.detail or {}),
        )


__all__ = ["CompetitorDetailsMixin"]
