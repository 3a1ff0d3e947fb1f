from datetime import date
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from siteledger.common.exceptions import LedgerDateNotFound, LedgerNotFound
from siteledger.core.dependencies import get_db
from siteledger.schemas.ledger import (
    CashSummaryResponse,
    LedgerCreateRequest,
    LedgerListResponse,
    LedgerResponse,
    LedgerUpdateRequest,
    OpeningBalanceResponse,
)
from siteledger.services import ledger_store
from siteledger.services.balance_calculator import get_opening_balance
from siteledger.services.cash_summary import ProjectCashAnalytics
from siteledger.services.ledger_service import LedgerService
from siteledger.logger_config import logger

router = APIRouter()


@router.post("/ledgers", response_model=LedgerResponse, status_code=status.HTTP_201_CREATED)
def create_ledger_route(
    data: LedgerCreateRequest,
    db: Session = Depends(get_db),
):
    """
    Create the day's ledger. Opening cash is derived from the previous
    ledger's closing cash plus deposits since; supplier-paid and quantified
    material lines fan out into purchases and inventory receipts.
    """
    service = LedgerService(db)
    ledger = service.create_ledger(
        project_id=data.ledger.project_id,
        ledger_date=data.ledger.date,
        notes=data.ledger.notes,
        lines=data.lines,
    )
    logger.info(f"Ledger {ledger.id} created for project {ledger.project_id} on {ledger.date}")
    return LedgerResponse.model_validate(ledger)


@router.put("/ledgers/{ledger_id}", response_model=LedgerResponse)
def update_ledger_route(
    ledger_id: str,
    data: LedgerUpdateRequest,
    db: Session = Depends(get_db),
):
    """Replace the ledger's lines wholesale and update notes/submitted_at."""
    service = LedgerService(db)
    ledger = service.update_ledger(ledger_id, data.ledger, data.lines)
    return LedgerResponse.model_validate(ledger)


@router.delete("/ledgers/{ledger_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ledger_route(
    ledger_id: str,
    db: Session = Depends(get_db),
):
    LedgerService(db).delete_ledger(ledger_id)
    return None


@router.get("/ledgers/{ledger_id}", response_model=LedgerResponse)
def get_ledger_route(
    ledger_id: str,
    db: Session = Depends(get_db),
):
    ledger = ledger_store.get_ledger_by_id(db, ledger_id)
    if not ledger:
        raise LedgerNotFound(ledger_id)
    return LedgerResponse.model_validate(ledger)


@router.get("/projects/{project_id}/ledgers", response_model=LedgerListResponse)
def list_ledgers_route(
    project_id: str,
    db: Session = Depends(get_db),
):
    """All ledgers for a project, newest first, each with its lines."""
    ledgers = ledger_store.list_ledgers(db, project_id)
    return LedgerListResponse(
        total=len(ledgers),
        ledgers=[LedgerResponse.model_validate(l) for l in ledgers],
    )


@router.get("/projects/{project_id}/ledgers/by-date/{ledger_date}", response_model=LedgerResponse)
def get_ledger_by_date_route(
    project_id: str,
    ledger_date: date,
    db: Session = Depends(get_db),
):
    ledger = ledger_store.get_ledger_by_date(db, project_id, ledger_date)
    if not ledger:
        raise LedgerDateNotFound(project_id, ledger_date)
    return LedgerResponse.model_validate(ledger)


@router.get("/projects/{project_id}/opening-balance/{target_date}", response_model=OpeningBalanceResponse)
def get_opening_balance_route(
    project_id: str,
    target_date: date,
    db: Session = Depends(get_db),
):
    balance = get_opening_balance(db, project_id, target_date)
    return OpeningBalanceResponse(project_id=project_id, date=target_date, **balance)


@router.get("/projects/{project_id}/cash-summary", response_model=CashSummaryResponse)
def get_cash_summary_route(
    project_id: str,
    db: Session = Depends(get_db),
):
    return CashSummaryResponse(**ProjectCashAnalytics(db).get_cash_summary(project_id))
