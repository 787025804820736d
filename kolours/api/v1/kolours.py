"""Kolour API endpoints."""

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from kolours.core.config import settings
from kolours.core.db import get_session
from kolours.database.inventory import get_all_minted_kolours, get_unavailable_kolours
from kolours.image_cid.config import ipfs_gateway_url, ipfs_uri
from kolours.image_cid.models import Kolour
from kolours.image_cid.service import KolourImageService

router = APIRouter(prefix="/kolours", tags=["kolours"])

MAX_AVAILABILITY_BATCH = 256


class KolourImageResponse(BaseModel):
    """Published image of a kolour."""

    kolour: str
    cid: str
    image_url: str
    ipfs_uri: str


class MintedKolourResponse(BaseModel):
    """A booked or minted kolour."""

    kolour: str
    user_address: str
    fee: int
    expected_earning: int | None = None


class AvailabilityRequest(BaseModel):
    """Kolours to check."""

    kolours: list[str] = Field(default_factory=list, max_length=MAX_AVAILABILITY_BATCH)


class AvailabilityResponse(BaseModel):
    """Availability of the requested kolours."""

    available: bool
    unavailable: list[str]


def get_image_cid_service(request: Request) -> KolourImageService:
    """Service built at startup and stored on the application state."""
    return request.app.state.image_cid_service


@router.get("/minted", response_model=list[MintedKolourResponse])
async def list_minted_kolours(
    session: AsyncSession = Depends(get_session),
) -> list[MintedKolourResponse]:
    """List every non-expired kolour with owner, fee and expected earning."""
    entries = await get_all_minted_kolours(session)
    return [
        MintedKolourResponse(
            kolour=entry.kolour,
            user_address=entry.user_address,
            fee=entry.fee,
            expected_earning=entry.expected_earning,
        )
        for entry in entries
    ]


@router.post("/availability", response_model=AvailabilityResponse)
async def check_kolours_availability(
    body: AvailabilityRequest,
    session: AsyncSession = Depends(get_session),
) -> AvailabilityResponse:
    """Report which of the requested kolours are already taken."""
    kolours = sorted({Kolour.parse(raw).hex for raw in body.kolours})
    unavailable = await get_unavailable_kolours(session, kolours)
    return AvailabilityResponse(available=not unavailable, unavailable=sorted(unavailable))


@router.get("/{kolour}/image", response_model=KolourImageResponse)
def get_kolour_image(
    kolour: str,
    service: KolourImageService = Depends(get_image_cid_service),
) -> KolourImageResponse:
    """
    Get the published image of a kolour.

    The image is generated and pinned on first request; later requests are
    served from cache. Runs in the threadpool since the workflow blocks on
    Redis and IPFS.
    """
    parsed = Kolour.parse(kolour)
    cid = service.get_image_cid(parsed)
    return KolourImageResponse(
        kolour=parsed.hex,
        cid=cid,
        image_url=ipfs_gateway_url(settings, cid),
        ipfs_uri=ipfs_uri(cid),
    )
