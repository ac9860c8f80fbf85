from typing import Any, Optional
from fastapi.responses import JSONResponse


def error_response(
    message: str = "Error occurred",
    details: Optional[Any] = None,
    status_code: int = 400,
    headers: Optional[dict] = None
) -> JSONResponse:
    """Standard error response"""
    content = {"error": message}

    if details:
        content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=content,
        headers=headers
    )


def validation_details(errors: list) -> list:
    """Flatten pydantic error entries into {field, message} pairs"""
    details = []
    for err in errors:
        # Drop the leading "body" / "query" / "path" segment
        loc = [str(part) for part in err.get("loc", ())[1:]]
        details.append({
            "field": ".".join(loc),
            "message": err.get("msg", "Invalid value"),
        })
    return details


def paginated_response(
    key: str,
    items: list,
    page: int,
    limit: int,
    total: int
) -> dict:
    """Paginated list payload"""
    return {
        key: items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": (total + limit - 1) // limit if limit else 0
        }
    }
