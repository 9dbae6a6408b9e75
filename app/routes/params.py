"""Query parameter dependencies shared by list endpoints."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Query


@dataclass
class PageParams:
	page: int = Query(default=1, ge=1)
	per_page: int | None = Query(default=None, description="Clamped to 1..100")
