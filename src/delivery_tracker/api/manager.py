"""Manager dashboard endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request, status

from delivery_tracker.api.dependencies import get_container, require_role
from delivery_tracker.api.schemas import DashboardOut, DeliveryIn, DeliveryOut
from delivery_tracker.domain.identity import RoleTag
from delivery_tracker.services.dashboard import DashboardTab

router = APIRouter(
    prefix="/manager",
    tags=["manager"],
    dependencies=[Depends(require_role(RoleTag.ADMIN))],
)


@router.get("")
async def dashboard(request: Request, tab: DashboardTab = DashboardTab.ALL) -> DashboardOut:
    """Return deliveries for a tab with pending and completed counts."""
    view = get_container(request).dashboard.view(tab)
    return DashboardOut(
        tab=view.tab,
        pending_count=view.pending_count,
        completed_count=view.completed_count,
        deliveries=[DeliveryOut.model_validate(d) for d in view.deliveries],
    )


@router.post("/deliveries", status_code=status.HTTP_201_CREATED)
async def add_delivery(payload: DeliveryIn, request: Request) -> DashboardOut:
    """Schedule a delivery and return the refreshed dashboard."""
    container = get_container(request)
    if not await container.dashboard.add_delivery(payload.to_domain()):
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="The delivery could not be added.",
        )
    return await dashboard(request)
