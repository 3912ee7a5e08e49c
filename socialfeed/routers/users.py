from fastapi import APIRouter, Depends, HTTPException, status

from socialfeed.routers.deps import get_current_user_id
from socialfeed.schemas.users import UserResponse
from socialfeed.services.users import user_store

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
def get_me(user_id: int = Depends(get_current_user_id)) -> UserResponse:
    user = user_store.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
