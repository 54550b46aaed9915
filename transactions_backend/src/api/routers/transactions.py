from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Request, status

from ..schemas import ErrorEnvelope, TransactionEnvelope, TransactionListEnvelope, TransactionOut
from ..services import TransactionService

router = APIRouter(
    prefix="/transactions",
    tags=["transactions"],
)

_NOT_FOUND = {404: {"model": ErrorEnvelope, "description": "Transaction not found"}}
_INVALID = {400: {"model": ErrorEnvelope, "description": "Validation error"}}
_STORE_DOWN = {500: {"model": ErrorEnvelope, "description": "Document store error"}}

_CREATE_EXAMPLE = {"name": "Coffee", "amount": 4.5, "date": "2024-01-01"}
_UPDATE_EXAMPLE = {"amount": 9.99}


def get_transaction_service(request: Request) -> TransactionService:
    """
    Dependency building the service over the store opened at startup.
    """
    return TransactionService(request.app.state.store)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=TransactionListEnvelope,
    summary="List Transactions",
    description="Return every transaction, most recent `date` first.",
    responses={**_STORE_DOWN},
)
def list_transactions(service: TransactionService = Depends(get_transaction_service)) -> TransactionListEnvelope:
    docs = service.list_all()
    return TransactionListEnvelope(count=len(docs), data=[TransactionOut(**d) for d in docs])


# PUBLIC_INTERFACE
@router.get(
    "/{transaction_id}",
    response_model=TransactionEnvelope,
    response_model_exclude_none=True,
    summary="Get Transaction",
    description="Get a single transaction by ID.",
    responses={**_NOT_FOUND, **_STORE_DOWN},
)
def get_transaction(
    transaction_id: str, service: TransactionService = Depends(get_transaction_service)
) -> TransactionEnvelope:
    doc = service.get_by_id(transaction_id)
    return TransactionEnvelope(data=TransactionOut(**doc))


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TransactionEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create Transaction",
    description="Validate and store a new transaction. `date` defaults to now.",
    responses={**_INVALID, **_STORE_DOWN},
)
def create_transaction(
    payload: Any = Body(default=None, examples=[_CREATE_EXAMPLE]),
    service: TransactionService = Depends(get_transaction_service),
) -> TransactionEnvelope:
    doc = service.create(payload)
    return TransactionEnvelope(message="Transaction created successfully", data=TransactionOut(**doc))


# PUBLIC_INTERFACE
@router.put(
    "/{transaction_id}",
    response_model=TransactionEnvelope,
    summary="Update Transaction",
    description="Partially update a transaction. Omitted fields keep their stored values.",
    responses={**_NOT_FOUND, **_INVALID, **_STORE_DOWN},
)
def update_transaction(
    transaction_id: str,
    payload: Any = Body(default=None, examples=[_UPDATE_EXAMPLE]),
    service: TransactionService = Depends(get_transaction_service),
) -> TransactionEnvelope:
    doc = service.update_by_id(transaction_id, payload)
    return TransactionEnvelope(message="Transaction updated successfully", data=TransactionOut(**doc))


# PUBLIC_INTERFACE
@router.delete(
    "/{transaction_id}",
    response_model=TransactionEnvelope,
    summary="Delete Transaction",
    description="Delete a transaction and return its last stored state.",
    responses={**_NOT_FOUND, **_STORE_DOWN},
)
def delete_transaction(
    transaction_id: str, service: TransactionService = Depends(get_transaction_service)
) -> TransactionEnvelope:
    doc = service.delete_by_id(transaction_id)
    return TransactionEnvelope(message="Transaction deleted successfully", data=TransactionOut(**doc))
