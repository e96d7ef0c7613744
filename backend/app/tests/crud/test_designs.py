import uuid

import pytest
from sqlmodel import Session

from app import crud
from app.design.errors import (
    AlreadyExistsError,
    ErrorCode,
    NotFoundError,
    SelectionValidationError,
    StateError,
    SubmissionError,
)
from app.design.lifecycle import DesignStatus
from app.models import UserRegister
from app.tests.utils import VALID_SELECTIONS


def _create(session, owner, selections=VALID_SELECTIONS, name="Night Ops"):
    return crud.create_design(
        session=session, owner_id=owner.id, name=name, raw_selections=selections
    )


def test_new_design_starts_in_draft(session, owner):
    design = _create(session, owner)

    assert design.status == DesignStatus.DRAFT.value
    assert design.rejection_reason is None
    assert design.version == 1
    assert design.selections["material_9"]["colorHex"] == "#111317"


def test_blank_name_gets_a_generated_one(session, owner):
    design = _create(session, owner, name="   ")
    assert design.name.startswith("Design ")


def test_invalid_selections_store_nothing(session, owner):
    with pytest.raises(SelectionValidationError):
        _create(session, owner, selections={"material_77": VALID_SELECTIONS["material_9"]})
    assert crud.list_designs(session=session, owner_id=owner.id) == []


def test_submit_then_submit_again(session, owner):
    design = _create(session, owner)

    submitted = crud.submit_design(session=session, owner_id=owner.id, design_id=design.id)
    assert submitted.status == DesignStatus.SUBMITTED.value

    with pytest.raises(StateError) as exc_info:
        crud.submit_design(session=session, owner_id=owner.id, design_id=design.id)
    assert exc_info.value.code is ErrorCode.ALREADY_SUBMITTED
    reloaded = crud.get_owned_design(session=session, owner_id=owner.id, design_id=design.id)
    assert reloaded.status == DesignStatus.SUBMITTED.value


def test_submit_without_glass_leaves_design_unchanged(session, owner):
    design = _create(session, owner, selections={"material_9": VALID_SELECTIONS["material_9"]})

    with pytest.raises(SubmissionError) as exc_info:
        crud.submit_design(session=session, owner_id=owner.id, design_id=design.id)

    assert exc_info.value.code is ErrorCode.MISSING_GLASS
    reloaded = crud.get_owned_design(session=session, owner_id=owner.id, design_id=design.id)
    assert reloaded.status == DesignStatus.DRAFT.value
    assert reloaded.version == 1


def test_reject_edit_resubmit_approve(session, owner):
    design = _create(session, owner)
    crud.submit_design(session=session, owner_id=owner.id, design_id=design.id)

    with pytest.raises(SelectionValidationError):
        crud.reject_design(session=session, design_id=design.id, reason="")
    assert crud.get_design(session=session, design_id=design.id).status == "SUBMITTED"

    rejected = crud.reject_design(
        session=session, design_id=design.id, reason="Needs glass pattern fix"
    )
    assert rejected.status == DesignStatus.REJECTED.value
    assert rejected.rejection_reason == "Needs glass pattern fix"

    edited = crud.update_design(
        session=session,
        owner_id=owner.id,
        design_id=design.id,
        name="",
        raw_selections={**VALID_SELECTIONS, "material_1": VALID_SELECTIONS["material_9"]},
    )
    assert edited.status == DesignStatus.DRAFT.value
    assert edited.rejection_reason is None
    assert edited.name == "Night Ops"
    assert "material_1" in edited.selections

    crud.submit_design(session=session, owner_id=owner.id, design_id=design.id)
    approved = crud.approve_design(session=session, design_id=design.id)
    assert approved.status == DesignStatus.APPROVED.value
    assert approved.rejection_reason is None

    with pytest.raises(StateError) as exc_info:
        crud.update_design(
            session=session,
            owner_id=owner.id,
            design_id=design.id,
            name="again",
            raw_selections=VALID_SELECTIONS,
        )
    assert exc_info.value.code is ErrorCode.APPROVED_IS_IMMUTABLE

    with pytest.raises(StateError) as exc_info:
        crud.submit_design(session=session, owner_id=owner.id, design_id=design.id)
    assert exc_info.value.code is ErrorCode.APPROVED_IS_IMMUTABLE


def test_approve_requires_submitted(session, owner):
    design = _create(session, owner)
    with pytest.raises(StateError) as exc_info:
        crud.approve_design(session=session, design_id=design.id)
    assert exc_info.value.code is ErrorCode.NOT_SUBMITTED


def test_other_users_get_not_found(session, owner, other_user):
    design = _create(session, owner)

    with pytest.raises(NotFoundError):
        crud.get_owned_design(session=session, owner_id=other_user.id, design_id=design.id)
    with pytest.raises(NotFoundError):
        crud.update_design(
            session=session,
            owner_id=other_user.id,
            design_id=design.id,
            name="mine now",
            raw_selections=VALID_SELECTIONS,
        )
    with pytest.raises(NotFoundError):
        crud.submit_design(session=session, owner_id=other_user.id, design_id=design.id)
    with pytest.raises(NotFoundError):
        crud.get_owned_design(session=session, owner_id=owner.id, design_id=uuid.uuid4())


def test_list_designs_is_scoped_to_owner(session, owner, other_user):
    _create(session, owner, name="first")
    _create(session, owner, name="second")
    _create(session, other_user, name="theirs")

    names = [d.name for d in crud.list_designs(session=session, owner_id=owner.id)]
    assert sorted(names) == ["first", "second"]


def test_list_submissions_spans_users(session, owner, other_user):
    mine = _create(session, owner)
    theirs = _create(session, other_user)
    _create(session, owner, name="draft only")
    crud.submit_design(session=session, owner_id=owner.id, design_id=mine.id)
    crud.submit_design(session=session, owner_id=other_user.id, design_id=theirs.id)

    rows = crud.list_submissions(session=session)

    assert {design.id for design, _ in rows} == {mine.id, theirs.id}
    assert {user.email for _, user in rows} == {"owner@example.com", "intruder@example.com"}


def test_stale_version_cannot_be_swapped(engine, owner):
    with Session(engine) as setup:
        design_id = _create(setup, owner).id

    with Session(engine) as admin_session, Session(engine) as owner_session:
        stale = crud.get_design(session=admin_session, design_id=design_id)
        assert stale.version == 1

        crud.submit_design(session=owner_session, owner_id=owner.id, design_id=design_id)

        swapped = crud.compare_and_swap(
            session=admin_session,
            design=stale,
            values={"status": DesignStatus.APPROVED.value, "rejection_reason": None},
        )
        admin_session.rollback()
        assert swapped is False

        current = crud.get_design(session=admin_session, design_id=design_id)
        assert current.status == DesignStatus.SUBMITTED.value
        assert current.version == 2


def test_duplicate_email_is_rejected_case_insensitively(session, owner):
    with pytest.raises(AlreadyExistsError) as exc_info:
        crud.create_user(
            session=session,
            user_create=UserRegister(email="  OWNER@Example.com ", password="another-password"),
        )
    assert exc_info.value.code is ErrorCode.EMAIL_ALREADY_REGISTERED


def test_authenticate(session, owner):
    assert crud.authenticate(session=session, email="Owner@example.com", password="correct-horse-battery")
    assert crud.authenticate(session=session, email="owner@example.com", password="nope") is None
    assert crud.authenticate(session=session, email="ghost@example.com", password="whatever") is None


def test_invalid_edit_of_approved_design_reports_immutability(session, owner):
    design = _create(session, owner)
    crud.submit_design(session=session, owner_id=owner.id, design_id=design.id)
    crud.approve_design(session=session, design_id=design.id)

    with pytest.raises(StateError) as exc_info:
        crud.update_design(
            session=session,
            owner_id=owner.id,
            design_id=design.id,
            name="repaint",
            raw_selections={"material_77": {"colorHex": "nope"}},
        )
    assert exc_info.value.code is ErrorCode.APPROVED_IS_IMMUTABLE
