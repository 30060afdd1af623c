"""Affiliate link endpoints and the public click counter."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException

from blogkit_service.auth.deps import AdminUserDep
from blogkit_service.db.deps import AffiliateLinksRepoDep, SessionDep
from blogkit_service.rest.schemas import AffiliateLinkSchema, AffiliateLinkWriteRequest

logger = structlog.get_logger()

router = APIRouter(prefix="/affiliate-links", tags=["affiliate-links"])

# Only the description may be cleared with an explicit null
_NULLABLE_FIELDS = frozenset({"description"})


def _link_to_schema(link) -> AffiliateLinkSchema:
    return AffiliateLinkSchema(
        id=link.id,
        name=link.name,
        url=link.url,
        description=link.description,
        clicks=link.clicks or 0,
        is_active=link.is_active,
        created_at=link.created_at,
        updated_at=link.updated_at,
    )


@router.get("", response_model=list[AffiliateLinkSchema])
async def list_links(links: AffiliateLinksRepoDep) -> list[AffiliateLinkSchema]:
    return [_link_to_schema(link) for link in await links.list()]


@router.get("/{link_id}", response_model=AffiliateLinkSchema)
async def get_link(link_id: int, links: AffiliateLinksRepoDep) -> AffiliateLinkSchema:
    link = await links.get(link_id)
    if not link:
        raise HTTPException(status_code=404, detail="Affiliate link not found")
    return _link_to_schema(link)


@router.post("", response_model=AffiliateLinkSchema, status_code=201)
async def create_link(
    request: AffiliateLinkWriteRequest,
    _admin: AdminUserDep,
    links: AffiliateLinksRepoDep,
    session: SessionDep,
) -> AffiliateLinkSchema:
    if not request.name or not request.url:
        raise HTTPException(status_code=400, detail="Name and url are required")
    link = await links.create(**request.model_dump(exclude_none=True))
    await session.commit()
    logger.info("affiliate_link_created", link_id=link.id)
    return _link_to_schema(link)


@router.put("/{link_id}", response_model=AffiliateLinkSchema)
async def update_link(
    link_id: int,
    request: AffiliateLinkWriteRequest,
    _admin: AdminUserDep,
    links: AffiliateLinksRepoDep,
    session: SessionDep,
) -> AffiliateLinkSchema:
    fields = {
        k: v
        for k, v in request.model_dump(exclude_unset=True).items()
        if v is not None or k in _NULLABLE_FIELDS
    }
    link = await links.update(link_id, **fields)
    if not link:
        raise HTTPException(status_code=404, detail="Affiliate link not found")
    await session.commit()
    logger.info("affiliate_link_updated", link_id=link_id)
    return _link_to_schema(link)


@router.delete("/{link_id}", status_code=204)
async def delete_link(
    link_id: int,
    _admin: AdminUserDep,
    links: AffiliateLinksRepoDep,
    session: SessionDep,
) -> None:
    if not await links.delete(link_id):
        raise HTTPException(status_code=404, detail="Affiliate link not found")
    await session.commit()
    logger.info("affiliate_link_deleted", link_id=link_id)


@router.post("/{link_id}/click", response_model=AffiliateLinkSchema)
async def record_click(
    link_id: int, links: AffiliateLinksRepoDep, session: SessionDep
) -> AffiliateLinkSchema:
    """Count a click on an active link. Inactive links are treated as missing."""
    link = await links.record_click(link_id)
    if not link:
        raise HTTPException(status_code=404, detail="Affiliate link not found")
    await session.commit()
    return _link_to_schema(link)
