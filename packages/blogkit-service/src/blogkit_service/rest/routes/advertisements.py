"""Advertisement endpoints. Reads are public, writes are admin-only."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, Response

from blogkit_service.auth.deps import AdminUserDep
from blogkit_service.db.deps import AdvertisementsRepoDep, SessionDep
from blogkit_service.rest.schemas import AdvertisementSchema, AdvertisementWriteRequest

logger = structlog.get_logger()

router = APIRouter(prefix="/advertisements", tags=["advertisements"])

NO_STORE = "private, no-store"
# Only the scheduling window may be cleared with an explicit null
_NULLABLE_FIELDS = frozenset({"start_date", "end_date"})


def _ad_to_schema(ad) -> AdvertisementSchema:
    return AdvertisementSchema(
        id=ad.id,
        name=ad.name,
        placement=ad.placement,
        content=ad.content,
        is_active=ad.is_active,
        start_date=ad.start_date,
        end_date=ad.end_date,
        created_at=ad.created_at,
        updated_at=ad.updated_at,
    )


@router.get("", response_model=list[AdvertisementSchema])
async def list_advertisements(
    response: Response, ads: AdvertisementsRepoDep
) -> list[AdvertisementSchema]:
    response.headers["Cache-Control"] = NO_STORE
    return [_ad_to_schema(ad) for ad in await ads.list()]


@router.get("/{ad_id}", response_model=AdvertisementSchema)
async def get_advertisement(
    ad_id: int, response: Response, ads: AdvertisementsRepoDep
) -> AdvertisementSchema:
    ad = await ads.get(ad_id)
    if not ad:
        raise HTTPException(status_code=404, detail="Advertisement not found")
    response.headers["Cache-Control"] = NO_STORE
    return _ad_to_schema(ad)


@router.post("", response_model=AdvertisementSchema, status_code=201)
async def create_advertisement(
    request: AdvertisementWriteRequest,
    _admin: AdminUserDep,
    ads: AdvertisementsRepoDep,
    session: SessionDep,
) -> AdvertisementSchema:
    if not request.name or not request.placement or not request.content:
        raise HTTPException(status_code=400, detail="Name, placement and content are required")
    ad = await ads.create(**request.model_dump(exclude_none=True))
    await session.commit()
    logger.info("advertisement_created", ad_id=ad.id)
    return _ad_to_schema(ad)


@router.put("/{ad_id}", response_model=AdvertisementSchema)
async def update_advertisement(
    ad_id: int,
    request: AdvertisementWriteRequest,
    _admin: AdminUserDep,
    ads: AdvertisementsRepoDep,
    session: SessionDep,
) -> AdvertisementSchema:
    fields = {
        k: v
        for k, v in request.model_dump(exclude_unset=True).items()
        if v is not None or k in _NULLABLE_FIELDS
    }
    ad = await ads.update(ad_id, **fields)
    if not ad:
        raise HTTPException(status_code=404, detail="Advertisement not found")
    await session.commit()
    logger.info("advertisement_updated", ad_id=ad_id)
    return _ad_to_schema(ad)


@router.delete("/{ad_id}", status_code=204)
async def delete_advertisement(
    ad_id: int,
    _admin: AdminUserDep,
    ads: AdvertisementsRepoDep,
    session: SessionDep,
) -> None:
    if not await ads.delete(ad_id):
        raise HTTPException(status_code=404, detail="Advertisement not found")
    await session.commit()
    logger.info("advertisement_deleted", ad_id=ad_id)
