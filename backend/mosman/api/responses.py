"""
Helpers that wrap payloads into the standard response envelopes.
"""
from typing import Any, Optional

from mosman.schemas.common import ApiResponse, PaginatedResponse, Pagination
from mosman.services.transactions import Page


def success(data: Any = None, message: Optional[str] = None) -> ApiResponse:
    return ApiResponse(success=True, data=data, message=message)


def paginated(data: list, page: Page) -> PaginatedResponse:
    return PaginatedResponse(
        success=True,
        data=data,
        pagination=Pagination(
            page=page.page,
            pageSize=page.page_size,
            total=page.total,
            totalPages=page.total_pages,
        ),
    )
