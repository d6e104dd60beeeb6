from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response

from fittrack.core.gpx import route_to_gpx
from fittrack.core.time_utils import compute_pace, format_duration
from fittrack.schemas.activity import ActivityDetail, ActivityRead, ActivitySummary, ActivityUpload
from fittrack.storage.activity_store import ActivityStore

router = APIRouter(prefix="/activities", tags=["activities"])


# Dependency: the store owned by the running app
def get_store(request: Request) -> ActivityStore:
    return request.app.state.store


def _summary(activity: ActivityRead) -> ActivitySummary:
    return ActivitySummary(
        id=activity.id,
        name=activity.name,
        date=activity.date,
        duration=activity.duration,
        distance=activity.distance,
        duration_display=format_duration(activity.duration),
        pace=compute_pace(activity.duration, activity.distance),
        photo_reference=activity.photo_reference,
    )


def _detail(activity: ActivityRead) -> ActivityDetail:
    return ActivityDetail(
        **activity.model_dump(),
        duration_display=format_duration(activity.duration),
        pace=compute_pace(activity.duration, activity.distance),
    )


def _get_or_404(store: ActivityStore, activity_id: int) -> ActivityRead:
    found = store.query(activity_id)
    if not found:
        raise HTTPException(status_code=404, detail="Activity not found")
    return found[0]


@router.get("/", response_model=list[ActivitySummary])
def list_activities(store: ActivityStore = Depends(get_store)):
    """All activities, most recent first. Routes are left out of the list."""
    return [_summary(a) for a in store.query()]


@router.post("/", response_model=ActivityDetail)
def create_activity(payload: ActivityUpload, store: ActivityStore = Depends(get_store)):
    activity_id = store.save(payload)
    return _detail(_get_or_404(store, activity_id))


@router.get("/{activity_id}", response_model=ActivityDetail)
def get_activity(activity_id: int, store: ActivityStore = Depends(get_store)):
    return _detail(_get_or_404(store, activity_id))


@router.get("/{activity_id}/gpx")
def export_activity_gpx(activity_id: int, store: ActivityStore = Depends(get_store)):
    activity = _get_or_404(store, activity_id)
    return Response(
        content=route_to_gpx(activity),
        media_type="application/gpx+xml",
        headers={"Content-Disposition": f'attachment; filename="activity-{activity_id}.gpx"'},
    )


@router.delete("/{activity_id}")
def delete_activity(activity_id: int, store: ActivityStore = Depends(get_store)):
    if not store.delete(activity_id):
        raise HTTPException(status_code=404, detail="Activity not found")
    return {"message": "Activity deleted"}
