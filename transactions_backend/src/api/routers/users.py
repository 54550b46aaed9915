from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Request, status

from ..schemas import ErrorEnvelope, UserEnvelope, UserListEnvelope, UserOut
from ..services import UserService

router = APIRouter(
    prefix="/users",
    tags=["users"],
)

_ERRORS = {
    400: {"model": ErrorEnvelope, "description": "Validation error"},
    404: {"model": ErrorEnvelope, "description": "User not found"},
    500: {"model": ErrorEnvelope, "description": "Document store error"},
}


def get_user_service(request: Request) -> UserService:
    return UserService(request.app.state.store)


# PUBLIC_INTERFACE
@router.get("", response_model=UserListEnvelope, summary="List Users", responses=_ERRORS)
def list_users(service: UserService = Depends(get_user_service)) -> UserListEnvelope:
    docs = service.list_all()
    return UserListEnvelope(count=len(docs), data=[UserOut(**d) for d in docs])


# PUBLIC_INTERFACE
@router.get(
    "/{user_id}",
    response_model=UserEnvelope,
    response_model_exclude_none=True,
    summary="Get User",
    responses=_ERRORS,
)
def get_user(user_id: str, service: UserService = Depends(get_user_service)) -> UserEnvelope:
    return UserEnvelope(data=UserOut(**service.get_by_id(user_id)))


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=UserEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create User",
    responses=_ERRORS,
)
def create_user(
    payload: Any = Body(default=None, examples=[{"name": "Asha Rao", "email": "Asha@Example.com"}]),
    service: UserService = Depends(get_user_service),
) -> UserEnvelope:
    doc = service.create(payload)
    return UserEnvelope(message="User created successfully", data=UserOut(**doc))


# PUBLIC_INTERFACE
@router.put("/{user_id}", response_model=UserEnvelope, summary="Update User", responses=_ERRORS)
def update_user(
    user_id: str,
    payload: Any = Body(default=None),
    service: UserService = Depends(get_user_service),
) -> UserEnvelope:
    doc = service.update_by_id(user_id, payload)
    return UserEnvelope(message="User updated successfully", data=UserOut(**doc))


# PUBLIC_INTERFACE
@router.delete("/{user_id}", response_model=UserEnvelope, summary="Delete User", responses=_ERRORS)
def delete_user(user_id: str, service: UserService = Depends(get_user_service)) -> UserEnvelope:
    doc = service.delete_by_id(user_id)
    return UserEnvelope(message="User deleted successfully", data=UserOut(**doc))
