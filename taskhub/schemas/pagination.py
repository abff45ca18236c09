"""
Pagination metadata schema.
Used by all list endpoints to provide consistent pagination metadata.
"""
from __future__ import annotations

import math

from pydantic import Field, computed_field

from taskhub.schemas.common import CamelModel


class Pagination(CamelModel):
    current_page: int = Field(ge=1)
    total_items: int = Field(ge=0)
    limit: int = Field(ge=1)

    @computed_field(alias="totalPages")  # type: ignore[misc]
    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_items / self.limit)

    @computed_field(alias="hasNextPage")  # type: ignore[misc]
    @property
    def has_next_page(self) -> bool:
        return self.current_page < self.total_pages

    @computed_field(alias="hasPrevPage")  # type: ignore[misc]
    @property
    def has_prev_page(self) -> bool:
        return self.current_page > 1
