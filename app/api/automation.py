"""Otomasyon akışları ve tick tetikleyicileri (operatör + cron)."""
from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.api.deps import require_admin, require_cron_token
from app.core.database import get_db
from app.models import FlowStatus
from app.schemas import FlowCreate, FlowToggle, FlowUpdate, SuccessResponse, TickResponse
from app.schemas.automation import FlowItem, FlowList, FlowResponse
from app.services import automation as automation_service
from app.services.push import PushService, get_push_service

router = APIRouter(prefix="/api/automation", tags=["automation"], dependencies=[Depends(require_admin)])
cron_router = APIRouter(prefix="/api", tags=["cron"])


def _flow_item(flow) -> FlowItem:
    return FlowItem.model_validate(flow, from_attributes=True)


@router.get("/flows", response_model=FlowList)
def flows_list(db: Session = Depends(get_db)):
    return FlowList(flows=[_flow_item(f) for f in automation_service.list_flows(db)])


@router.post("/flows", response_model=FlowResponse)
def flow_create(body: FlowCreate, db: Session = Depends(get_db)):
    flow = automation_service.create_flow(
        db,
        name=body.name,
        trigger_delay_hours=body.trigger_delay_hours,
        title=body.title,
        body=body.body,
        url=body.url,
    )
    return FlowResponse(flow=_flow_item(flow))


@router.patch("/flows/{flow_id}", response_model=FlowResponse)
def flow_update(flow_id: int, body: FlowUpdate, db: Session = Depends(get_db)):
    flow = automation_service.update_flow(db, flow_id, **body.model_dump(exclude_unset=True))
    return FlowResponse(flow=_flow_item(flow))


@router.post("/flows/{flow_id}/toggle", response_model=FlowResponse)
def flow_toggle(flow_id: int, body: FlowToggle, db: Session = Depends(get_db)):
    flow = automation_service.toggle_flow(db, flow_id, FlowStatus(body.status))
    return FlowResponse(flow=_flow_item(flow))


@router.delete("/flows/{flow_id}", response_model=SuccessResponse)
def flow_delete(flow_id: int, db: Session = Depends(get_db)):
    automation_service.delete_flow(db, flow_id)
    return SuccessResponse()


@router.post("/process", response_model=TickResponse)
def process_now(
    db: Session = Depends(get_db),
    push: PushService = Depends(get_push_service),
):
    """Operatörün elle tetiklediği tick."""
    result = automation_service.process_tick(db, push)
    return TickResponse(success=True, total_sent=result.total_sent, processed_at=result.processed_at)


@cron_router.get("/cron", response_model=TickResponse, dependencies=[Depends(require_cron_token)])
def cron_tick(
    db: Session = Depends(get_db),
    push: PushService = Depends(get_push_service),
):
    result = automation_service.process_tick(db, push)
    return TickResponse(success=True, total_sent=result.total_sent, processed_at=result.processed_at)
