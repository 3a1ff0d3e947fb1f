from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from siteledger.common.exceptions import SupplierNotFound
from siteledger.core.dependencies import get_db
from siteledger.schemas.supplier import (
    SupplierCreate,
    SupplierDepositCreate,
    SupplierDepositResponse,
    SupplierListResponse,
    SupplierPurchaseCreate,
    SupplierPurchaseListResponse,
    SupplierPurchaseResponse,
    SupplierResponse,
    SupplierTransaction,
    SupplierTransactionHistoryResponse,
)
from siteledger.services.supplier_service import (
    create_supplier,
    create_supplier_purchase,
    get_all_suppliers,
    get_supplier_by_id,
    get_supplier_purchases,
    get_supplier_transaction_history,
    record_supplier_deposit,
)
from siteledger.logger_config import logger

router = APIRouter()


@router.get("/suppliers", response_model=SupplierListResponse)
def get_suppliers(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=100),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    """Get all suppliers with optional search filtering."""
    suppliers, total = get_all_suppliers(db, skip=skip, limit=limit, search=search)
    return SupplierListResponse(
        total=total,
        suppliers=[SupplierResponse.model_validate(s) for s in suppliers],
    )


@router.get("/suppliers/{supplier_id}", response_model=SupplierResponse)
def get_supplier(
    supplier_id: str,
    db: Session = Depends(get_db)
):
    supplier = get_supplier_by_id(db, supplier_id)
    if not supplier:
        raise SupplierNotFound(supplier_id)
    return SupplierResponse.model_validate(supplier)


@router.post("/suppliers", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
def create_supplier_route(
    supplier_data: SupplierCreate,
    db: Session = Depends(get_db)
):
    supplier = create_supplier(
        db=db,
        name=supplier_data.name,
        phone=supplier_data.phone,
        initial_deposit=supplier_data.initial_deposit,
    )
    logger.info(f"Supplier {supplier.id} created")
    return SupplierResponse.model_validate(supplier)


@router.post(
    "/suppliers/{supplier_id}/deposits",
    response_model=SupplierDepositResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_supplier_deposit(
    supplier_id: str,
    data: SupplierDepositCreate,
    db: Session = Depends(get_db)
):
    """Add credit to a supplier account."""
    deposit = record_supplier_deposit(
        db,
        supplier_id=supplier_id,
        amount=data.amount,
        deposit_date=data.date,
        reference=data.reference,
        note=data.note,
    )
    return SupplierDepositResponse.model_validate(deposit)


@router.get("/suppliers/{supplier_id}/transactions", response_model=SupplierTransactionHistoryResponse)
def get_supplier_transactions(
    supplier_id: str,
    project_id: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    history = get_supplier_transaction_history(db, supplier_id, project_id=project_id)
    return SupplierTransactionHistoryResponse(
        supplier=SupplierResponse.model_validate(history["supplier"]),
        purchases=[SupplierTransaction(**p) for p in history["purchases"]],
        ledger_entries=[SupplierTransaction(**e) for e in history["ledger_entries"]],
    )


@router.get("/supplier-purchases", response_model=SupplierPurchaseListResponse)
def list_supplier_purchases(
    project_id: Optional[str] = Query(None),
    supplier_id: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    purchases = get_supplier_purchases(db, project_id=project_id, supplier_id=supplier_id)
    return SupplierPurchaseListResponse(
        total=len(purchases),
        purchases=[SupplierPurchaseResponse.model_validate(p) for p in purchases],
    )


@router.post("/supplier-purchases", response_model=SupplierPurchaseResponse, status_code=status.HTTP_201_CREATED)
def create_supplier_purchase_route(
    data: SupplierPurchaseCreate,
    db: Session = Depends(get_db)
):
    """Spend supplier credit outside a daily ledger; rejected if it exceeds the balance."""
    purchase = create_supplier_purchase(
        db,
        supplier_id=data.supplier_id,
        project_id=data.project_id,
        amount=data.amount,
        item=data.item,
        purchase_date=data.date,
    )
    return SupplierPurchaseResponse.model_validate(purchase)
