from typing import Optional
from fastapi import Header, HTTPException, Request
from realtime.hub import RealtimeHub


async def get_current_user(x_user_id: Optional[str] = Header(None)) -> str:
    # Authentication happens upstream; it forwards the verified user id in this header.
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authorized, no user")
    return x_user_id


def get_hub(request: Request) -> RealtimeHub:
    return request.app.state.hub
