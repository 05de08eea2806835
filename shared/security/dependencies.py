from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader
from .api_key import INTERNAL_API_HEADER_NAME, verify_api_key

api_key_header = APIKeyHeader(name=INTERNAL_API_HEADER_NAME, auto_error=False)

async def verify_internal_api_key(api_key: str | None = Depends(api_key_header)) -> bool:
    """Rejects any caller that is not the checkout engine or another sibling service."""
    if not verify_api_key(api_key):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Invalid or missing {INTERNAL_API_HEADER_NAME} header"
        )
    return True
