import logging
from decimal import ROUND_HALF_UP, Decimal

import redis
from sqlalchemy import delete, func, insert, literal, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from events_api.core import timeutils
from events_api.models.events import Event
from events_api.models.registrations import Registration
from events_api.models.users import User
from events_api.schemas.events import EventCreate, EventDetailOut, EventOut, EventStatsOut
from events_api.schemas.users import UserCreate, UserOut

logger = logging.getLogger(__name__)


class RegistrationError(Exception):
    """Base class for registration business-rule violations."""


class EventNotFoundError(RegistrationError):
    pass


class UserNotFoundError(RegistrationError):
    pass


class EventExpiredError(RegistrationError):
    pass


class AlreadyRegisteredError(RegistrationError):
    pass


class EventFullError(RegistrationError):
    pass


class NotRegisteredError(RegistrationError):
    pass


class RegistrationBusyError(RegistrationError):
    pass


class EmailTakenError(RegistrationError):
    pass


def percentage_used(total: int, capacity: int) -> str:
    """Share of capacity in use, rounded half-up to a whole percent."""
    percent = (Decimal(total) * 100 / Decimal(capacity)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{int(percent)}%"


class RegistrationService:
    """
    Business rules for events and the users registered to them.

    Each call opens its own session from ``session_factory``. Registration
    for an event is serialized through a Redis lock so that the capacity
    check and the insert cannot interleave with another request.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        redis_client: redis.Redis,
        *,
        lock_timeout: int = 10,
        lock_blocking_timeout: int = 5,
    ):
        self.session_factory = session_factory
        self.redis_client = redis_client
        self.lock_timeout = lock_timeout
        self.lock_blocking_timeout = lock_blocking_timeout

    def create_event(self, data: EventCreate) -> EventOut:
        with self.session_factory() as db, db.begin():
            event = Event(
                title=data.title,
                date=data.date,
                location=data.location,
                capacity=data.capacity,
            )
            db.add(event)
            db.flush()
            logger.info("Created event %s '%s' (capacity %s)", event.id, event.title, event.capacity)
            return EventOut.model_validate(event)

    def create_user(self, data: UserCreate) -> UserOut:
        try:
            with self.session_factory() as db, db.begin():
                user = User(name=data.name, email=data.email)
                db.add(user)
                db.flush()
                return UserOut.model_validate(user)
        except IntegrityError as e:
            raise EmailTakenError("Email already in use") from e

    def register(self, event_id: int, user_id: int) -> None:
        lock = self.redis_client.lock(
            f"event_lock:{event_id}",
            timeout=self.lock_timeout,
            blocking_timeout=self.lock_blocking_timeout,
        )
        # only one request per event may check capacity and insert at a time
        try:
            acquired = lock.acquire(blocking=True)
        except redis.exceptions.LockError as e:
            raise RegistrationBusyError("Could not acquire lock, please try again.") from e
        if not acquired:
            raise RegistrationBusyError("Could not acquire lock, please try again.")

        try:
            self._register_in_transaction(event_id, user_id)
        finally:
            try:
                lock.release()
            except redis.exceptions.LockNotOwnedError:
                # the transaction already finished; its outcome stands
                logger.warning("Registration lock for event %s expired before release", event_id)

        logger.info("User %s registered for event %s", user_id, event_id)

    def _register_in_transaction(self, event_id: int, user_id: int) -> None:
        try:
            with self.session_factory() as db, db.begin():
                event = db.get(Event, event_id)
                if event is None:
                    raise EventNotFoundError("Event not found")

                if db.get(User, user_id) is None:
                    raise UserNotFoundError("User not found")

                if timeutils.as_utc(event.date) <= timeutils.utcnow():
                    raise EventExpiredError("Cannot register for past events")

                if _find_registration(db, event_id, user_id) is not None:
                    raise AlreadyRegisteredError("User already registered")

                # Insert only while the event still has room, as a single statement
                registered = (
                    select(func.count(Registration.id))
                    .where(Registration.event_id == event_id)
                    .correlate(None)
                    .scalar_subquery()
                )
                stmt = insert(Registration).from_select(
                    ["user_id", "event_id"],
                    select(literal(user_id), literal(event_id)).where(registered < event.capacity),
                )
                res = db.execute(stmt)
                if res.rowcount != 1:  # type: ignore
                    raise EventFullError("Event is full")
        except IntegrityError as e:
            # a concurrent request inserted the same (user, event) pair first
            raise AlreadyRegisteredError("User already registered") from e

    def cancel(self, event_id: int, user_id: int) -> None:
        with self.session_factory() as db, db.begin():
            res = db.execute(
                delete(Registration).where(
                    Registration.event_id == event_id,
                    Registration.user_id == user_id,
                )
            )
            if res.rowcount == 0:  # type: ignore
                raise NotRegisteredError("User not registered for this event")

        logger.info("User %s cancelled registration for event %s", user_id, event_id)

    def get_event_detail(self, event_id: int) -> EventDetailOut:
        with self.session_factory() as db:
            event = db.scalar(
                select(Event)
                .where(Event.id == event_id)
                .options(selectinload(Event.registrations).selectinload(Registration.user))
            )
            if event is None:
                raise EventNotFoundError("Event not found")

            return EventDetailOut(
                **EventOut.model_validate(event).model_dump(),
                registered_users=[UserOut.model_validate(reg.user) for reg in event.registrations],
            )

    def list_upcoming(self) -> list[EventOut]:
        with self.session_factory() as db:
            events = db.scalars(
                select(Event)
                .where(Event.date > timeutils.utcnow())
                .order_by(Event.date.asc(), Event.location.asc())
            ).all()
            return [EventOut.model_validate(event) for event in events]

    def get_stats(self, event_id: int) -> EventStatsOut:
        with self.session_factory() as db:
            event = db.get(Event, event_id)
            if event is None:
                raise EventNotFoundError("Event not found")
            capacity = event.capacity

            total = db.scalar(
                select(func.count(Registration.id)).where(Registration.event_id == event_id)
            ) or 0

        remaining = capacity - total
        if remaining < 0:
            logger.warning("Event %s holds %s registrations for capacity %s", event_id, total, capacity)

        return EventStatsOut(
            total_registrations=total,
            remaining_capacity=remaining,
            percentage_used=percentage_used(total, capacity),
        )


def _find_registration(db: Session, event_id: int, user_id: int) -> Registration | None:
    return db.scalar(
        select(Registration).where(
            Registration.event_id == event_id,
            Registration.user_id == user_id,
        )
    )
