from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from siteledger.core.dependencies import get_db
from siteledger.schemas.cash_deposit import (
    CashDepositCreate,
    CashDepositListResponse,
    CashDepositResponse,
)
from siteledger.services.cash_deposit_service import get_cash_deposits, record_cash_deposit

router = APIRouter()


@router.post("/cash-deposits", response_model=CashDepositResponse, status_code=status.HTTP_201_CREATED)
def create_cash_deposit(
    data: CashDepositCreate,
    db: Session = Depends(get_db),
):
    """Record cash sent to the project; counted in the next opening balance."""
    deposit = record_cash_deposit(
        db,
        project_id=data.project_id,
        amount=data.amount,
        deposit_date=data.date,
        method=data.method,
        reference=data.reference,
        note=data.note,
    )
    return CashDepositResponse.model_validate(deposit)


@router.get("/projects/{project_id}/cash-deposits", response_model=CashDepositListResponse)
def list_cash_deposits(
    project_id: str,
    db: Session = Depends(get_db),
):
    rows, total_amount = get_cash_deposits(db, project_id)
    return CashDepositListResponse(
        total=len(rows),
        total_amount=total_amount,
        deposits=[CashDepositResponse.model_validate(r) for r in rows],
    )
