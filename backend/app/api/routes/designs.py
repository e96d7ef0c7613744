import uuid
from typing import Any

from fastapi import APIRouter

from app import crud
from app.api.deps import CurrentUser, SessionDep
from app.models import DesignPublic, DesignsPublic, DesignUpsert

router = APIRouter(prefix="/designs", tags=["designs"])


@router.post("/", response_model=DesignPublic, status_code=201)
def create_design(
    *, session: SessionDep, current_user: CurrentUser, design_in: DesignUpsert
) -> Any:
    """
    Save a new design in DRAFT. Selections are validated against the catalog.
    """
    return crud.create_design(
        session=session,
        owner_id=current_user.id,
        name=design_in.name,
        raw_selections=design_in.selections,
    )


@router.get("/", response_model=DesignsPublic)
def read_designs(session: SessionDep, current_user: CurrentUser) -> Any:
    """
    List the current user's designs, newest first.
    """
    designs = crud.list_designs(session=session, owner_id=current_user.id)
    return DesignsPublic(
        data=[DesignPublic.model_validate(design) for design in designs],
        count=len(designs),
    )


@router.get("/{id}", response_model=DesignPublic)
def read_design(id: uuid.UUID, session: SessionDep, current_user: CurrentUser) -> Any:
    return crud.get_owned_design(session=session, owner_id=current_user.id, design_id=id)


@router.put("/{id}", response_model=DesignPublic)
def update_design(
    *, id: uuid.UUID, session: SessionDep, current_user: CurrentUser, design_in: DesignUpsert
) -> Any:
    """
    Replace a design's selections. Only DRAFT or REJECTED designs can be edited;
    the design goes back to DRAFT and any rejection reason is cleared.
    """
    return crud.update_design(
        session=session,
        owner_id=current_user.id,
        design_id=id,
        name=design_in.name,
        raw_selections=design_in.selections,
    )


@router.post("/{id}/submit", response_model=DesignPublic)
def submit_design(id: uuid.UUID, session: SessionDep, current_user: CurrentUser) -> Any:
    """
    Send a design for admin review.
    """
    return crud.submit_design(session=session, owner_id=current_user.id, design_id=id)
