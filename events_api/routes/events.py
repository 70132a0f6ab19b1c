from fastapi import APIRouter, Depends, HTTPException, Request

from events_api.schemas.events import EventCreate, EventCreatedOut, EventDetailOut, EventOut, EventStatsOut
from events_api.schemas.registrations import MessageOut, RegistrationRequest
from events_api.schemas.users import UserCreate, UserOut
from events_api.services.registrations import (
    AlreadyRegisteredError,
    EmailTakenError,
    EventExpiredError,
    EventFullError,
    EventNotFoundError,
    NotRegisteredError,
    RegistrationBusyError,
    RegistrationService,
    UserNotFoundError,
)

router = APIRouter(prefix="/events", tags=["events"])


def get_service(request: Request) -> RegistrationService:
    return request.app.state.registration_service


@router.post("", response_model=EventCreatedOut, status_code=201)
def create_event(payload: EventCreate, service: RegistrationService = Depends(get_service)):
    event = service.create_event(payload)
    return EventCreatedOut(event_id=event.id)


@router.get("/upcoming/events", response_model=list[EventOut])
def upcoming_events(service: RegistrationService = Depends(get_service)):
    """Events dated after now, by date then location."""
    return service.list_upcoming()


@router.post("/test-create-user", response_model=UserOut)
def test_create_user(payload: UserCreate, service: RegistrationService = Depends(get_service)):
    try:
        return service.create_user(payload)
    except EmailTakenError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{event_id}", response_model=EventDetailOut)
def event_detail(event_id: int, service: RegistrationService = Depends(get_service)):
    try:
        return service.get_event_detail(event_id)
    except EventNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{event_id}/register", response_model=MessageOut)
def register(
    event_id: int,
    payload: RegistrationRequest,
    service: RegistrationService = Depends(get_service),
):
    try:
        service.register(event_id, payload.user_id)
    except (EventNotFoundError, UserNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (EventExpiredError, AlreadyRegisteredError, EventFullError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RegistrationBusyError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return MessageOut(message="User registered successfully")


@router.delete("/{event_id}/register", response_model=MessageOut)
def cancel_registration(
    event_id: int,
    payload: RegistrationRequest,
    service: RegistrationService = Depends(get_service),
):
    try:
        service.cancel(event_id, payload.user_id)
    except NotRegisteredError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return MessageOut(message="Registration cancelled")


@router.get("/{event_id}/stats", response_model=EventStatsOut)
def event_stats(event_id: int, service: RegistrationService = Depends(get_service)):
    try:
        return service.get_stats(event_id)
    except EventNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
