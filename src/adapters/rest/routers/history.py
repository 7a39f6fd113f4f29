"""Protected medication history endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from factory import ServiceFactory
from domain.entities import MedicationRecord
from domain.exceptions import RepositoryError
from adapters.rest.dependencies import get_factory, get_current_user, CurrentUser
from adapters.rest.schemas import RecordBody, RecordOut

router = APIRouter(prefix="/history", tags=["history"])


def _record_out(record: MedicationRecord) -> RecordOut:
    return RecordOut(
        id=record.id,
        created_at=record.created_at,
        medicines=record.medicines,
    )


@router.get("", response_model=list[RecordOut])
async def list_history(
    user: CurrentUser = Depends(get_current_user),
    factory: ServiceFactory = Depends(get_factory),
):
    records = await factory.create_medication_history_service().list_history(user.user_id)
    return [_record_out(r) for r in records]


@router.post("", response_model=RecordOut, status_code=201)
async def add_record(
    body: RecordBody,
    user: CurrentUser = Depends(get_current_user),
    factory: ServiceFactory = Depends(get_factory),
):
    """Store the medicines extracted from a scan or voice query."""
    service = factory.create_medication_history_service()
    try:
        record = await service.record(user.user_id, body.medicines)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        )
    except RepositoryError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found.")
    return _record_out(record)
