from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rmerch.api.responses import ok
from rmerch.db import get_db
from rmerch.schemas.base import dump
from rmerch.schemas.user_schema import LoginIn, RegisterIn, UserOut
from rmerch.services.user_service import UserService

router = APIRouter(tags=["auth"])


@router.post("/register", summary="Create an account")
def register(payload: RegisterIn, db: Session = Depends(get_db)):
    user, token = UserService(db).register(
        payload.name, payload.email, payload.password, role=payload.role
    )
    return ok(
        {"token": token, "user": dump(UserOut.model_validate(user))},
        message="User registered",
        status_code=201,
    )


@router.post("/login", summary="Exchange credentials for a token")
def login(payload: LoginIn, db: Session = Depends(get_db)):
    user, token = UserService(db).login(payload.email, payload.password)
    return ok(
        {"token": token, "user": dump(UserOut.model_validate(user))},
        message="Login successful",
    )
