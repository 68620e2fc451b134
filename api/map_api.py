"""Map & routing panel API endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, Field

from core.errors import PortalAPIError
from core.map_panel import MapRoutingPanel
from tools.marker_interaction import DragOutcome

router = APIRouter(prefix="/api/map", tags=["map"])


class LocationCreate(BaseModel):
    name: str = ""
    type: Optional[str] = None
    latitude: float
    longitude: float
    description: Optional[str] = None
    image: Optional[str] = None


class DragEnd(BaseModel):
    latitude: float
    longitude: float


class EditMode(BaseModel):
    enabled: bool


class ManualLocation(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


def get_panel(request: Request) -> MapRoutingPanel:
    return request.app.state.panel


def _dialog_payload(panel: MapRoutingPanel) -> dict:
    current = panel.dialogs.current
    pending = panel.dialogs.pending
    return {
        "message": {"kind": current.kind, "text": current.message} if current else None,
        "confirmation": pending.message if pending else None,
    }


def _require_location(panel: MapRoutingPanel, location_id: str):
    location = panel.store.get(location_id)
    if location is None:
        raise HTTPException(status_code=404, detail=f"Location {location_id} not found")
    return location


@router.get("/locations")
def list_locations(panel: MapRoutingPanel = Depends(get_panel)):
    """Rendered markers: locations with icon, events and sync state."""
    markers = [view.to_dict() for view in panel.marker_views()]
    return JSONResponse({
        "status": "warning" if panel.store.error else "success",
        "message": panel.store.error or f"Retrieved {len(markers)} locations",
        "data": markers,
        "count": len(markers),
    })


@router.post("/locations", status_code=201)
def create_location(body: LocationCreate, panel: MapRoutingPanel = Depends(get_panel)):
    location_type = "SCHOOL" if body.type is None else body.type
    try:
        errors = panel.store.create(body.name, location_type, body.latitude, body.longitude,
                                    description=body.description, image=body.image)
    except PortalAPIError as e:
        logger.error(f"Location create failed: {e}")
        raise HTTPException(status_code=502, detail=f"Failed to create location: {e.message}")

    if errors:
        raise HTTPException(status_code=400, detail={"message": "Validation failed", "errors": errors})

    return JSONResponse(status_code=201, content={
        "status": "success",
        "message": "Location created successfully!",
        "count": len(panel.store.locations),
    })


@router.get("/locations/deleted")
def list_deleted_locations(panel: MapRoutingPanel = Depends(get_panel)):
    try:
        deleted = panel.store.load_deleted()
    except PortalAPIError as e:
        raise HTTPException(status_code=502, detail=f"Failed to load deleted locations: {e.message}")
    return JSONResponse({
        "status": "success",
        "data": [location.to_dict() for location in deleted],
        "count": len(deleted),
    })


@router.post("/locations/{location_id}/restore")
def restore_location(location_id: str, panel: MapRoutingPanel = Depends(get_panel)):
    try:
        panel.store.restore(location_id)
    except PortalAPIError as e:
        raise HTTPException(status_code=502, detail=f"Failed to restore location: {e.message}")
    return JSONResponse({"status": "success", "message": f"Location {location_id} restored"})


@router.delete("/locations/{location_id}")
def request_delete(location_id: str, panel: MapRoutingPanel = Depends(get_panel)):
    """Queue a delete; it only happens after POST /confirm."""
    if not panel.store.remove(location_id):
        raise HTTPException(status_code=404, detail=f"Location {location_id} not found")
    return JSONResponse(status_code=202, content={"status": "pending", **_dialog_payload(panel)})


@router.post("/locations/{location_id}/drag")
def drag_location(location_id: str, body: DragEnd, panel: MapRoutingPanel = Depends(get_panel)):
    if not panel.markers.edit_mode:
        raise HTTPException(status_code=409, detail="Edit mode is off")
    _require_location(panel, location_id)

    panel.markers.drag_start(location_id)
    outcome = panel.markers.drag_end(location_id, body.latitude, body.longitude)
    if outcome == DragOutcome.IGNORED:
        raise HTTPException(status_code=409, detail="Drag ignored")
    return JSONResponse({
        "status": "success" if outcome != DragOutcome.MOVE_UNSYNCED else "warning",
        "outcome": outcome.value,
        "unsynced": panel.store.is_unsynced(location_id),
        **_dialog_payload(panel),
    })


@router.post("/locations/retry-unsynced")
def retry_unsynced(panel: MapRoutingPanel = Depends(get_panel)):
    remaining = panel.store.retry_unsynced()
    return JSONResponse({
        "status": "success" if not remaining else "warning",
        "unsynced": remaining,
    })


@router.get("/locations/{location_id}/events")
def location_events(location_id: str, panel: MapRoutingPanel = Depends(get_panel)):
    location = _require_location(panel, location_id)
    events = panel.overlays.events_for_location(location)
    return JSONResponse({
        "status": "success",
        "data": [{
            "id": event.id,
            "title": event.title,
            "dateTime": event.date_time.isoformat() if event.date_time else None,
            "venue": event.venue,
            "status": event.status,
            "maxParticipants": event.max_participants,
        } for event in events],
        "count": len(events),
    })


@router.get("/locations/{location_id}/coordinates")
def copy_coordinates(location_id: str, panel: MapRoutingPanel = Depends(get_panel)):
    location = _require_location(panel, location_id)
    return JSONResponse({"status": "success", "text": panel.copy_coordinates(location.position)})


@router.get("/youth")
def list_youth(panel: MapRoutingPanel = Depends(get_panel)):
    youth = panel.overlays.youth
    return JSONResponse({
        "status": "success",
        "data": [{
            "id": profile.id,
            "fullName": profile.full_name,
            "latitude": profile.latitude,
            "longitude": profile.longitude,
        } for profile in youth],
        "count": len(youth),
    })


@router.post("/edit-mode")
def set_edit_mode(body: EditMode, panel: MapRoutingPanel = Depends(get_panel)):
    panel.markers.set_edit_mode(body.enabled)
    return JSONResponse({"status": "success", "editMode": panel.markers.edit_mode})


@router.get("/dialog")
def get_dialog(panel: MapRoutingPanel = Depends(get_panel)):
    return JSONResponse({"status": "success", **_dialog_payload(panel)})


@router.post("/confirm")
def confirm(panel: MapRoutingPanel = Depends(get_panel)):
    if panel.dialogs.pending is None:
        raise HTTPException(status_code=409, detail="Nothing to confirm")
    result = panel.dialogs.confirm()
    return JSONResponse({"status": "success" if result else "error", "result": bool(result),
                         **_dialog_payload(panel)})


@router.post("/cancel")
def cancel(panel: MapRoutingPanel = Depends(get_panel)):
    panel.dialogs.cancel()
    return JSONResponse({"status": "success", **_dialog_payload(panel)})


@router.post("/user-location")
def set_user_location(body: ManualLocation, panel: MapRoutingPanel = Depends(get_panel)):
    """Manual selection: equivalent to choosing 'select on map' and clicking."""
    panel.start_location_selection()
    panel.handle_map_click(body.latitude, body.longitude)
    location = panel.tracker.user_location
    return JSONResponse({
        "status": "success",
        "data": {"latitude": location.latitude, "longitude": location.longitude,
                 "accuracy": location.accuracy, "source": location.source},
    })


@router.post("/user-location/locate")
def locate_user(panel: MapRoutingPanel = Depends(get_panel)):
    if not panel.locate_user():
        raise HTTPException(status_code=502, detail=panel.tracker.error)
    location = panel.tracker.user_location
    return JSONResponse({
        "status": "success",
        "data": {"latitude": location.latitude, "longitude": location.longitude,
                 "accuracy": location.accuracy, "source": location.source},
    })


@router.get("/route/{location_id}")
def get_route(location_id: str, panel: MapRoutingPanel = Depends(get_panel)):
    _require_location(panel, location_id)
    if panel.tracker.user_location is None:
        raise HTTPException(status_code=409, detail="Set your location first to get a route.")
    route = panel.request_route(location_id)
    if route is None:
        # A newer selection superseded this one
        raise HTTPException(status_code=409, detail="Route request superseded")
    return JSONResponse({"status": "success", "data": route.to_dict()})


@router.delete("/route")
def clear_route(panel: MapRoutingPanel = Depends(get_panel)):
    panel.routes.clear()
    return JSONResponse({"status": "success"})
