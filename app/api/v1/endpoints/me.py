from fastapi import APIRouter, Depends

from app.schemas.me import MeOut
from app.services.auth import Identity, get_identity

router = APIRouter()

@router.get("/me", response_model=MeOut)
async def me(identity: Identity = Depends(get_identity)) -> MeOut:
    return MeOut(id=identity.id, email=identity.email)
