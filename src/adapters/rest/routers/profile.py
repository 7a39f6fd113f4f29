"""Protected profile endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from factory import ServiceFactory
from domain.entities import Identity
from adapters.rest.dependencies import get_factory, get_current_user, CurrentUser
from adapters.rest.schemas import ProfileBody, ProfileOut

router = APIRouter(prefix="/profile", tags=["profile"])


def _profile_out(identity: Identity) -> ProfileOut:
    return ProfileOut(
        username=identity.username,
        email=identity.email,
        phone_number=identity.phone_number,
        age=identity.age,
        medical_history=identity.medical_history,
    )


@router.get("", response_model=ProfileOut)
async def get_profile(
    user: CurrentUser = Depends(get_current_user),
    factory: ServiceFactory = Depends(get_factory),
):
    identity = await factory.create_profile_service().get_profile(user.user_id)
    if identity is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found.")
    return _profile_out(identity)


@router.put("")
async def update_profile(
    data: ProfileBody,
    user: CurrentUser = Depends(get_current_user),
    factory: ServiceFactory = Depends(get_factory),
):
    """Update age and medical history; later consultations use the new values."""
    service = factory.create_profile_service()
    try:
        identity = await service.update_profile(user.user_id, data.age, data.medical_history)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        )
    if identity is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found.")
    return {
        "message": "Profile updated successfully",
        "profile": _profile_out(identity),
    }
