from fastapi import Header, HTTPException


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> int:
    """Caller id as set by the authenticating gateway."""
    if x_user_id is None or not x_user_id.strip().isdigit():
        raise HTTPException(status_code=401, detail="Missing or invalid X-User-ID header")
    return int(x_user_id)
