"""Expense endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from splity.api.dependencies import get_async_session, get_current_user
from splity.repositories.expense import ExpenseRepository
from splity.schemas.auth import AuthenticatedUser
from splity.schemas.expense import (
    ExpenseResponse,
    ExpensesCreate,
    ExpensesCreateResponse,
    ExpensesDelete,
    ExpensesDeleteResponse,
    ExpenseUpdate,
)
from splity.services.exceptions import PartyNotFoundError, UnknownUsersError

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.post("", response_model=ExpensesCreateResponse, status_code=201)
async def create_expenses(
    data: ExpensesCreate,
    _current_user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ExpensesCreateResponse:
    """Create one or more expenses paid by ``payerId`` in ``partyId``."""
    try:
        expenses = await ExpenseRepository(db).create_many(data)
    except PartyNotFoundError as e:
        raise HTTPException(status_code=404, detail="Party not found") from e
    except UnknownUsersError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return ExpensesCreateResponse(created_expenses=[expense.expense_id for expense in expenses])


@router.get("", response_model=list[ExpenseResponse])
async def list_expenses(
    party_id: UUID = Query(..., alias="partyId"),
    db: AsyncSession = Depends(get_async_session),
) -> list[ExpenseResponse]:
    """Get a party's expenses, oldest first."""
    expenses = await ExpenseRepository(db).list_by_party(party_id)
    return [ExpenseResponse.model_validate(expense) for expense in expenses]


@router.put("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: UUID,
    data: ExpenseUpdate,
    _current_user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ExpenseResponse:
    """Update an expense's description and/or amount."""
    expense = await ExpenseRepository(db).update(expense_id, data)
    if expense is None:
        raise HTTPException(status_code=404, detail="Expense not found")
    return ExpenseResponse.model_validate(expense)


@router.delete("", response_model=ExpensesDeleteResponse)
async def delete_expenses(
    data: ExpensesDelete,
    _current_user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ExpensesDeleteResponse:
    """
    Delete expenses by id.

    Unknown ids are skipped; the request fails with 404 only when none of the
    ids exist.
    """
    deleted = await ExpenseRepository(db).delete_many(data.expense_ids)
    if not deleted:
        raise HTTPException(status_code=404, detail="No expenses found to delete")

    requested = len(set(data.expense_ids))
    return ExpensesDeleteResponse(
        success=True,
        deleted_count=len(deleted),
        requested_count=requested,
        deleted_expense_ids=deleted,
        message=f"Deleted {len(deleted)} of {requested} expenses",
    )
