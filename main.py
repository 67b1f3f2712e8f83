from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Depends
from uuid import UUID
from datetime import timedelta
from typing import List
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    # Reservation
    CreateReservationRequest, ExtensionRequest, HandleExtensionRequest,
    ReservationResponse, ReservationActionResponse, ParticipantResponse,
    AvailableActionsResponse, SweepResponse,
    # Auth
    Token, UserResponse
)

from api.dependencies import get_current_active_user, get_current_actor, require_staff, fake_users_db, get_user
from infrastructure.security import verify_password, create_access_token
from infrastructure.config import get_settings
from infrastructure.logging_config import configure_logging, add_audit_middleware
from infrastructure.clock import SystemClock
from infrastructure.notifications import LoggingEventPublisher
from domain.auth import User
from domain.clock import Clock
from domain.value_objects import Actor, Participant

from application.services import ReservationService
from application.sweeper import ReservationSweeper
from domain.conflicts import ConflictChecker
from domain.extension import ExtensionProtocol
from domain.state_machine import ReservationStateMachine
from infrastructure.repositories.in_memory_repositories import InMemoryReservationRepository
from domain.enums import ActorRole, ExtensionStatus, ReservationStatus
from domain.errors import ErrorCode
from domain.results import ActionResult

settings = get_settings()
configure_logging(settings)

# Initialize collaborators
reservation_repo = InMemoryReservationRepository()
event_publisher = LoggingEventPublisher()
system_clock = SystemClock(settings.timezone)
state_machine = ReservationStateMachine(
    start_window=settings.start_window,
    expiry_grace=settings.expiry_grace
)
extension_protocol = ExtensionProtocol(
    ConflictChecker(reservation_repo),
    buffer=settings.extension_buffer,
    fixed_increment=settings.fixed_extension
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await event_publisher.connect()
    try:
        yield
    finally:
        await event_publisher.disconnect()


app = FastAPI(
    title=settings.app_name,
    description="Reservation lifecycle and continuous extension engine for university rooms",
    version="1.0.0",
    lifespan=lifespan
)
add_audit_middleware(app)


# Dependency injection
def get_clock() -> Clock:
    return system_clock


def get_reservation_service(clock: Clock = Depends(get_clock)) -> ReservationService:
    return ReservationService(
        reservation_repo,
        event_publisher,
        clock,
        state_machine=state_machine,
        extension_protocol=extension_protocol
    )


def get_sweeper(service: ReservationService = Depends(get_reservation_service)) -> ReservationSweeper:
    return ReservationSweeper(service)

# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

@app.get("/api/enums/reservation-status", tags=["Enum Reference"])
async def get_reservation_statuses():
    """Get all ReservationStatus enum values"""
    return {
        "values": [item.value for item in ReservationStatus],
        "description": "Reservation status values: Pending, Approved, Rejected, Ongoing, Completed, Cancelled, Expired"
    }

@app.get("/api/enums/extension-status", tags=["Enum Reference"])
async def get_extension_statuses():
    """Get all ExtensionStatus enum values"""
    return {
        "values": [item.value for item in ExtensionStatus],
        "description": "Extension status values: None, Pending, Approved, Rejected"
    }

@app.get("/api/enums/actor-role", tags=["Enum Reference"])
async def get_actor_roles():
    """Get all ActorRole enum values"""
    return {
        "values": [item.value for item in ActorRole],
        "description": "Actor roles: User, Staff, Admin, System"
    }

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = get_user(fake_users_db, form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token_expires = timedelta(minutes=settings.access_token_expire_minutes)
    access_token = create_access_token(
        data={"sub": user.username}, expires_delta=access_token_expires
    )
    return {"access_token": access_token, "token_type": "bearer"}

@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return current_user

# ============================================================================
# RESERVATION ENDPOINTS
# ============================================================================

@app.post("/api/reservations", response_model=ReservationResponse, status_code=201, tags=["Reservations"])
async def create_reservation(
    request: CreateReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    actor: Actor = Depends(get_current_actor)
):
    """Create new reservation"""
    result = await service.create_reservation(
        actor=actor,
        room_id=request.room_id,
        room_name=request.room_name,
        location=request.location,
        purpose=request.purpose,
        start_datetime=request.start_datetime,
        end_datetime=request.end_datetime,
        num_users=request.num_users,
        participants=[Participant(**p.model_dump()) for p in request.participants]
    )
    return _reservation_to_response(_unwrap(result))

@app.get("/api/reservations", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_all_reservations(
    service: ReservationService = Depends(get_reservation_service),
    actor: Actor = Depends(require_staff)
):
    """Get all reservations"""
    reservations = await service.get_all_reservations()
    return [_reservation_to_response(r) for r in reservations]

@app.post("/api/reservations/sweep", response_model=SweepResponse, tags=["Reservations"])
async def sweep_reservations(
    sweeper: ReservationSweeper = Depends(get_sweeper),
    actor: Actor = Depends(require_staff)
):
    """Expire unstarted reservations and complete elapsed ones"""
    report = await sweeper.run_once()
    return SweepResponse(**report.model_dump())

@app.get("/api/reservations/user/{user_id}", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_user_reservations(
    user_id: str,
    service: ReservationService = Depends(get_reservation_service),
    actor: Actor = Depends(get_current_actor)
):
    """Get all reservations of a main reserver"""
    if actor.user_id != user_id and not actor.is_staff():
        raise HTTPException(status_code=403, detail="Not allowed")
    reservations = await service.get_reservations_by_user(user_id)
    return [_reservation_to_response(r) for r in reservations]

@app.get("/api/rooms/{room_id}/reservations", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_room_schedule(
    room_id: str,
    service: ReservationService = Depends(get_reservation_service),
    actor: Actor = Depends(get_current_actor)
):
    """Get a room's reservations ordered by start time"""
    reservations = await service.get_room_schedule(room_id)
    return [_reservation_to_response(r) for r in reservations]

@app.get("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    actor: Actor = Depends(get_current_actor)
):
    """Get reservation by ID"""
    reservation = await service.get_reservation(reservation_id)
    if not reservation:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return _reservation_to_response(reservation)

@app.get("/api/reservations/{reservation_id}/actions", response_model=AvailableActionsResponse, tags=["Reservations"])
async def get_available_actions(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    actor: Actor = Depends(get_current_actor)
):
    """Actions the caller may perform on the reservation right now"""
    actions = await service.available_actions(reservation_id, actor)
    if actions is None:
        raise HTTPException(status_code=404, detail="Reservation not found")
    reservation = await service.get_reservation(reservation_id)
    return AvailableActionsResponse(
        reservation_id=reservation_id,
        status=reservation.status.value,
        actions=[a.value for a in actions]
    )

@app.post("/api/reservations/{reservation_id}/approve", response_model=ReservationActionResponse, tags=["Lifecycle"])
async def approve_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    actor: Actor = Depends(get_current_actor)
):
    """Approve a pending reservation"""
    return _action_to_response(await service.approve(reservation_id, actor))

@app.post("/api/reservations/{reservation_id}/reject", response_model=ReservationActionResponse, tags=["Lifecycle"])
async def reject_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    actor: Actor = Depends(get_current_actor)
):
    """Reject a pending reservation"""
    return _action_to_response(await service.reject(reservation_id, actor))

@app.post("/api/reservations/{reservation_id}/start", response_model=ReservationActionResponse, tags=["Lifecycle"])
async def start_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    actor: Actor = Depends(get_current_actor)
):
    """Start an approved reservation (opens 15 minutes before its start time)"""
    return _action_to_response(await service.start(reservation_id, actor))

@app.post("/api/reservations/{reservation_id}/end-early", response_model=ReservationActionResponse, tags=["Lifecycle"])
async def end_reservation_early(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    actor: Actor = Depends(get_current_actor)
):
    """End an ongoing reservation"""
    return _action_to_response(await service.end_early(reservation_id, actor))

@app.post("/api/reservations/{reservation_id}/cancel", response_model=ReservationActionResponse, tags=["Lifecycle"])
async def cancel_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service),
    actor: Actor = Depends(get_current_actor)
):
    """Cancel a pending or approved reservation (main reserver only)"""
    return _action_to_response(await service.cancel(reservation_id, actor))

# ============================================================================
# EXTENSION ENDPOINTS
# ============================================================================

@app.put("/api/reservations/{reservation_id}/request-extension", response_model=ReservationActionResponse, tags=["Extensions"])
async def request_extension(
    reservation_id: UUID,
    request: ExtensionRequest,
    service: ReservationService = Depends(get_reservation_service),
    actor: Actor = Depends(get_current_actor)
):
    """Request more time for an ongoing reservation"""
    result = await service.request_extension(
        reservation_id,
        actor,
        reason=request.reason,
        extension_type=request.extension_type,
        minutes=request.minutes
    )
    return _action_to_response(result)

@app.put("/api/reservations/{reservation_id}/handle-extension", response_model=ReservationActionResponse, tags=["Extensions"])
async def handle_extension(
    reservation_id: UUID,
    request: HandleExtensionRequest,
    service: ReservationService = Depends(get_reservation_service),
    actor: Actor = Depends(get_current_actor)
):
    """Approve or reject the pending extension request"""
    return _action_to_response(await service.resolve_extension(reservation_id, actor, request.action))

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

_ERROR_STATUS_CODES = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.UNAUTHORIZED: 403,
    ErrorCode.CONFLICTING_UPDATE: 409,
    ErrorCode.ROOM_BUSY: 409,
}

def _unwrap(result: ActionResult):
    """Return the reservation of a successful result or raise the mapped HTTP error"""
    if not result.ok:
        raise HTTPException(
            status_code=_ERROR_STATUS_CODES.get(result.error.code, 400),
            detail={"code": result.error.code.value, "message": result.error.message}
        )
    return result.reservation

def _action_to_response(result: ActionResult) -> ReservationActionResponse:
    reservation = _unwrap(result)
    return ReservationActionResponse(
        **_reservation_to_response(reservation).model_dump(),
        conflict_time=result.conflict_time
    )

def _reservation_to_response(reservation) -> ReservationResponse:
    """Convert Reservation entity to ReservationResponse"""
    return ReservationResponse(
        reservation_id=reservation.reservation_id,
        room_id=reservation.room_id,
        room_name=reservation.room_name,
        location=reservation.location,
        user_id=reservation.user_id,
        participants=[
            ParticipantResponse(
                name=p.name,
                id_number=p.id_number,
                department=p.department,
                course=p.course,
                year_level=p.year_level
            )
            for p in reservation.participants
        ],
        num_users=reservation.num_users,
        purpose=reservation.purpose,
        start_datetime=reservation.start_datetime,
        end_datetime=reservation.end_datetime,
        current_end_datetime=reservation.current_end_time,
        status=reservation.status.value,
        extension_requested=reservation.extension_requested,
        extension_status=reservation.extension_status.value,
        extension_type=reservation.extension_type.value,
        extension_minutes=reservation.extension_minutes,
        extension_reason=reservation.extension_reason,
        extended_end_datetime=reservation.extended_end_datetime,
        max_extended_end_datetime=reservation.max_extended_end_datetime,
        is_open_ended=reservation.is_open_ended,
        started_at=reservation.started_at,
        ended_at=reservation.ended_at,
        created_at=reservation.created_at,
        updated_at=reservation.updated_at,
        version=reservation.version
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
