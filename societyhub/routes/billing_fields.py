from typing import List

from fastapi import APIRouter, Depends
import structlog

from ..deps import get_storage
from ..errors import NotFoundError
from ..schemas.billing_fields import BillingFieldCreate, BillingFieldResponse, BillingFieldUpdate
from ..storage.provider import Storage


router = APIRouter(prefix="/api/billing-fields", tags=["billing-fields"])

logger = structlog.get_logger(__name__)


@router.get("", response_model=List[BillingFieldResponse])
def list_billing_fields(storage: Storage = Depends(get_storage)):
    return storage.get_billing_fields()


@router.post("", response_model=BillingFieldResponse)
def create_billing_field(payload: BillingFieldCreate, storage: Storage = Depends(get_storage)):
    field = storage.create_billing_field(payload)
    logger.info("billing_field_created", field_id=field.id, name=field.name, type=field.type)
    return field


@router.put("/{field_id}", response_model=BillingFieldResponse)
def update_billing_field(field_id: int, payload: BillingFieldUpdate, storage: Storage = Depends(get_storage)):
    field = storage.update_billing_field(field_id, payload)
    if not field:
        raise NotFoundError("Billing field", field_id)
    return field


@router.delete("/{field_id}")
def delete_billing_field(field_id: int, storage: Storage = Depends(get_storage)):
    if not storage.delete_billing_field(field_id):
        raise NotFoundError("Billing field", field_id)
    logger.info("billing_field_deleted", field_id=field_id)
    return {"success": True}
