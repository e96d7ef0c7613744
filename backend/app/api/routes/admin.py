import uuid
from typing import Any

from fastapi import APIRouter, Body

from app import crud
from app.api.deps import AdminDep, SessionDep
from app.models import DesignPublic, DesignReject, SubmissionPublic, SubmissionsPublic

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/submissions", response_model=SubmissionsPublic)
def read_submissions(session: SessionDep, admin: AdminDep) -> Any:
    """
    Every SUBMITTED design across all users, most recently updated first.
    """
    rows = crud.list_submissions(session=session)
    data = [
        SubmissionPublic.model_validate(
            {
                **DesignPublic.model_validate(design).model_dump(),
                "user_id": user.id,
                "user_email": user.email,
            }
        )
        for design, user in rows
    ]
    return SubmissionsPublic(data=data, count=len(data))


@router.post("/designs/{id}/approve", response_model=DesignPublic)
def approve_design(id: uuid.UUID, session: SessionDep, admin: AdminDep) -> Any:
    return crud.approve_design(session=session, design_id=id)


@router.post("/designs/{id}/reject", response_model=DesignPublic)
def reject_design(
    id: uuid.UUID,
    session: SessionDep,
    admin: AdminDep,
    body: DesignReject | None = Body(default=None),
) -> Any:
    """
    Reject a submitted design. A non-blank reason is required and stored.
    """
    return crud.reject_design(
        session=session, design_id=id, reason=body.reason if body else None
    )
