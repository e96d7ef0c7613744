import logging
import time
import uuid
from collections.abc import Mapping
from typing import Any

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, select

from app.core.config import settings
from app.core.security import get_password_hash, verify_password
from app.design.catalog import DEFAULT_CATALOG, Catalog
from app.design.errors import AlreadyExistsError, ErrorCode, NotFoundError, StateError
from app.design.lifecycle import DesignEvent, DesignStatus, Transition, plan_transition
from app.design.submission import check_submittable
from app.design.validator import selections_from_record, selections_to_record, validate_selections
from app.models import Design, User, UserRegister, get_datetime_utc, normalize_email

logger = logging.getLogger(__name__)


def _rollback_session_safely(session: Session) -> None:
    try:
        session.rollback()
    except Exception as exc:
        logger.warning("Session rollback failed: %s", exc)


# Users

def create_user(*, session: Session, user_create: UserRegister) -> User:
    db_obj = User(
        email=normalize_email(user_create.email),
        hashed_password=get_password_hash(user_create.password),
    )
    session.add(db_obj)
    try:
        session.commit()
    except IntegrityError:
        # The unique index on user.email decides registration races
        _rollback_session_safely(session)
        raise AlreadyExistsError(ErrorCode.EMAIL_ALREADY_REGISTERED, "email already registered")
    session.refresh(db_obj)
    return db_obj


def get_user_by_email(*, session: Session, email: str) -> User | None:
    statement = select(User).where(User.email == normalize_email(email))
    session_user = session.exec(statement).first()
    return session_user


# Dummy hash to use for timing attack prevention when user is not found
# This is an Argon2 hash of a random password, used to ensure constant-time comparison
DUMMY_HASH = "$argon2id$v=19$m=65536,t=3,p=4$MjQyZWE1MzBjYjJlZTI0Yw$YTU4NGM5ZTZmYjE2NzZlZjY0ZWY3ZGRkY2U2OWFjNjk"


def authenticate(*, session: Session, email: str, password: str) -> User | None:
    db_user = get_user_by_email(session=session, email=email)
    if not db_user:
        # Keep the response time similar whether or not the email exists
        verify_password(password, DUMMY_HASH)
        return None
    verified, updated_password_hash = verify_password(password, db_user.hashed_password)
    if not verified:
        return None
    if updated_password_hash:
        db_user.hashed_password = updated_password_hash
        session.add(db_user)
        session.commit()
        session.refresh(db_user)
    return db_user


# Designs

def _default_design_name() -> str:
    return f"Design {int(time.time())}"


def create_design(
    *,
    session: Session,
    owner_id: uuid.UUID,
    name: str | None,
    raw_selections: Mapping[str, Any],
    catalog: Catalog = DEFAULT_CATALOG,
) -> Design:
    selections = validate_selections(raw_selections, catalog)
    now = get_datetime_utc()
    db_design = Design(
        name=(name or "").strip() or _default_design_name(),
        selections=selections_to_record(selections),
        status=DesignStatus.DRAFT.value,
        owner_id=owner_id,
        created_at=now,
        updated_at=now,
    )
    session.add(db_design)
    try:
        session.commit()
    except SQLAlchemyError:
        _rollback_session_safely(session)
        logger.error("Failed to store new design for user %s", owner_id, exc_info=True)
        raise
    session.refresh(db_design)
    logger.info("Design %s created for user %s", db_design.id, owner_id)
    return db_design


def list_designs(*, session: Session, owner_id: uuid.UUID) -> list[Design]:
    statement = (
        select(Design)
        .where(Design.owner_id == owner_id)
        .order_by(col(Design.created_at).desc())
    )
    return list(session.exec(statement).all())


def _load_design(session: Session, design_id: uuid.UUID) -> Design | None:
    # Always re-read the committed row; guards must never run on a cached copy
    return session.get(Design, design_id, populate_existing=True)


def get_owned_design(*, session: Session, owner_id: uuid.UUID, design_id: uuid.UUID) -> Design:
    """Resolve a design for its owner.

    A design owned by someone else is reported exactly like a missing one, so
    callers cannot probe for other users' design ids.
    """
    design = _load_design(session, design_id)
    if design is None or design.owner_id != owner_id:
        raise NotFoundError()
    return design


def get_design(*, session: Session, design_id: uuid.UUID) -> Design:
    design = _load_design(session, design_id)
    if design is None:
        raise NotFoundError()
    return design


def compare_and_swap(*, session: Session, design: Design, values: Mapping[str, Any]) -> bool:
    """Write ``values`` only if the row is still at ``design.version``.

    Returns False (and writes nothing) when another writer got there first.
    The caller commits.
    """
    statement = (
        update(Design)
        .where(col(Design.id) == design.id, col(Design.version) == design.version)
        .values(version=design.version + 1, updated_at=get_datetime_utc(), **values)
        .execution_options(synchronize_session=False)
    )
    result = session.exec(statement)  # type: ignore[call-overload]
    return result.rowcount == 1


def _apply_event(
    *,
    session: Session,
    design_id: uuid.UUID,
    event: DesignEvent,
    owner_id: uuid.UUID | None = None,
    reason: str | None = None,
    build_values=None,
    catalog: Catalog = DEFAULT_CATALOG,
) -> Design:
    """Read, guard and write one transition as a single optimistic critical section.

    On a lost race the row is re-read and the guard evaluated again, so the
    outcome always reflects the most recently committed status.
    """
    attempts = settings.TRANSITION_MAX_RETRIES + 1
    for attempt in range(1, attempts + 1):
        if owner_id is not None:
            design = get_owned_design(session=session, owner_id=owner_id, design_id=design_id)
        else:
            design = get_design(session=session, design_id=design_id)

        transition: Transition = plan_transition(design.status, event, reason=reason)
        if event is DesignEvent.SUBMIT:
            check_submittable(selections_from_record(design.selections), catalog)

        values: dict[str, Any] = {
            "status": transition.target.value,
            "rejection_reason": transition.rejection_reason,
        }
        if build_values is not None:
            values.update(build_values(design))

        try:
            swapped = compare_and_swap(session=session, design=design, values=values)
            if swapped:
                # Snapshot our own write before committing; a later writer must
                # not leak into the returned design
                session.refresh(design)
                session.expunge(design)
                session.commit()
        except SQLAlchemyError:
            _rollback_session_safely(session)
            logger.error(
                "Storage failure applying %s to design %s", event.value, design_id, exc_info=True
            )
            raise

        if swapped:
            logger.info(
                "Design %s moved %s -> %s via %s",
                design_id,
                transition.source.value,
                transition.target.value,
                event.value,
            )
            return design

        _rollback_session_safely(session)
        logger.warning(
            "Design %s changed while applying %s (attempt %s/%s); re-checking",
            design_id,
            event.value,
            attempt,
            attempts,
        )

    raise StateError(
        ErrorCode.CONCURRENT_MODIFICATION,
        "design was modified concurrently, please retry",
    )


def update_design(
    *,
    session: Session,
    owner_id: uuid.UUID,
    design_id: uuid.UUID,
    name: str | None,
    raw_selections: Mapping[str, Any],
    catalog: Catalog = DEFAULT_CATALOG,
) -> Design:
    new_name = (name or "").strip()

    # Runs after the ownership and state guards, so an APPROVED design reports
    # APPROVED_IS_IMMUTABLE whatever the new selections look like
    def build_values(existing: Design) -> dict[str, Any]:
        selections = validate_selections(raw_selections, catalog)
        return {"name": new_name or existing.name, "selections": selections_to_record(selections)}

    return _apply_event(
        session=session,
        design_id=design_id,
        event=DesignEvent.EDIT,
        owner_id=owner_id,
        build_values=build_values,
        catalog=catalog,
    )


def submit_design(
    *,
    session: Session,
    owner_id: uuid.UUID,
    design_id: uuid.UUID,
    catalog: Catalog = DEFAULT_CATALOG,
) -> Design:
    return _apply_event(
        session=session,
        design_id=design_id,
        event=DesignEvent.SUBMIT,
        owner_id=owner_id,
        catalog=catalog,
    )


def approve_design(*, session: Session, design_id: uuid.UUID) -> Design:
    return _apply_event(session=session, design_id=design_id, event=DesignEvent.APPROVE)


def reject_design(*, session: Session, design_id: uuid.UUID, reason: str | None) -> Design:
    return _apply_event(
        session=session, design_id=design_id, event=DesignEvent.REJECT, reason=reason
    )


def list_submissions(*, session: Session) -> list[tuple[Design, User]]:
    statement = (
        select(Design, User)
        .join(User, col(User.id) == col(Design.owner_id))
        .where(Design.status == DesignStatus.SUBMITTED.value)
        .order_by(col(Design.updated_at).desc())
    )
    return list(session.exec(statement).all())
