from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from rmerch.api.deps import require_role
from rmerch.api.responses import ok, pagination
from rmerch.db import get_db
from rmerch.schemas.base import dump
from rmerch.schemas.user_schema import UserOut, UserUpdate
from rmerch.services.user_service import UserService

router = APIRouter(
    prefix="/users", tags=["users"], dependencies=[Depends(require_role("admin"))]
)


@router.get("", summary="List users (admin)")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    role: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    users, total = UserService(db).list_users(page=page, size=limit, role=role)
    return ok(
        [dump(UserOut.model_validate(u)) for u in users],
        pagination=pagination(total, page, limit),
    )


@router.patch("/{user_id}", summary="Update a user (admin)")
def update_user(user_id: int, payload: UserUpdate, db: Session = Depends(get_db)):
    user = UserService(db).update_user(user_id, **payload.model_dump(exclude_unset=True))
    return ok(dump(UserOut.model_validate(user)), message="User updated")


@router.delete("/{user_id}", summary="Delete a user (admin)")
def delete_user(user_id: int, db: Session = Depends(get_db)):
    user = UserService(db).delete_user(user_id)
    return ok({"id": user.id, "email": user.email}, message="User deleted")
