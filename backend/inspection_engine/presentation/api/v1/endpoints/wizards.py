"""Wizard endpoints — drive an inspection wizard over HTTP."""

from fastapi import APIRouter, Depends, HTTPException, status

from inspection_engine.application.schemas import (
    CreateBroadcasterRequest,
    CreateProgramRequest,
    FieldChangeRequest,
    ReferenceEntityResponse,
    SessionResponse,
    SideFlowResponse,
    SideReturnRequest,
    StartWizardRequest,
)
from inspection_engine.application.services import InspectionWizard, WizardRegistry
from inspection_engine.domain.entities import EntityKind
from inspection_engine.domain.exceptions import (
    BackingStoreError,
    EntityNotFoundError,
    NetworkError,
    NotFoundError,
    ReadOnlyFieldError,
    ValidationError,
    WizardStateError,
)
from inspection_engine.infrastructure.dependencies import get_wizard_registry

router = APIRouter(prefix="/wizards", tags=["Wizards"])


def _get_wizard(registry: WizardRegistry, wizard_id: str) -> InspectionWizard:
    try:
        return registry.get(wizard_id)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _view(wizard: InspectionWizard) -> SessionResponse:
    return SessionResponse.build(
        wizard.wizard_id or "",
        wizard.stage,
        wizard.session,
        wizard.inspection_id,
        wizard.in_side_flow,
    )


def _to_http(exc: Exception) -> HTTPException:
    """Map engine and backing-store errors to HTTP responses."""
    if isinstance(exc, WizardStateError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.field_errors)
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    if isinstance(exc, NetworkError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message)
    if isinstance(exc, BackingStoreError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message)
    if isinstance(exc, EntityNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    # ReadOnlyFieldError and unknown fields
    return HTTPException(status_code=422, detail=str(exc))


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def start_wizard(
    data: StartWizardRequest,
    registry: WizardRegistry = Depends(get_wizard_registry),
) -> SessionResponse:
    """Start a wizard at step 1; ``restore_draft`` comes back from a side flow."""
    wizard = registry.create()
    try:
        await wizard.start(
            data.inspection_id,
            restore_draft=data.restore_draft,
            new_entity_kind=data.new_entity_kind,
            new_entity_name=data.new_entity_name,
        )
    except Exception:
        registry.discard(wizard.wizard_id)
        raise
    return _view(wizard)


@router.get("/{wizard_id}", response_model=SessionResponse)
async def get_wizard(
    wizard_id: str,
    registry: WizardRegistry = Depends(get_wizard_registry),
) -> SessionResponse:
    return _view(_get_wizard(registry, wizard_id))


@router.delete("/{wizard_id}", status_code=status.HTTP_204_NO_CONTENT)
async def discard_wizard(
    wizard_id: str,
    registry: WizardRegistry = Depends(get_wizard_registry),
) -> None:
    """Drop the in-memory wizard; the inspection record is untouched."""
    try:
        registry.discard(wizard_id)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.patch("/{wizard_id}/fields", response_model=SessionResponse)
async def change_fields(
    wizard_id: str,
    data: FieldChangeRequest,
    registry: WizardRegistry = Depends(get_wizard_registry),
) -> SessionResponse:
    """Apply field edits; each one restarts the auto-save quiet period."""
    wizard = _get_wizard(registry, wizard_id)
    try:
        wizard.set_fields(data.fields)
    except (WizardStateError, ReadOnlyFieldError, ValueError) as e:
        raise _to_http(e)
    return _view(wizard)


@router.post("/{wizard_id}/save", response_model=SessionResponse)
async def save_now(
    wizard_id: str,
    registry: WizardRegistry = Depends(get_wizard_registry),
) -> SessionResponse:
    wizard = _get_wizard(registry, wizard_id)
    try:
        await wizard.save()
    except WizardStateError as e:
        raise _to_http(e)
    return _view(wizard)


@router.post("/{wizard_id}/advance", response_model=SessionResponse)
async def advance(
    wizard_id: str,
    registry: WizardRegistry = Depends(get_wizard_registry),
) -> SessionResponse:
    """Save and move on. Save failures are reported in the read model, not as errors."""
    wizard = _get_wizard(registry, wizard_id)
    try:
        await wizard.advance()
    except WizardStateError as e:
        raise _to_http(e)
    return _view(wizard)


@router.post("/{wizard_id}/retreat", response_model=SessionResponse)
async def retreat(
    wizard_id: str,
    registry: WizardRegistry = Depends(get_wizard_registry),
) -> SessionResponse:
    wizard = _get_wizard(registry, wizard_id)
    try:
        await wizard.retreat()
    except WizardStateError as e:
        raise _to_http(e)
    return _view(wizard)


@router.post("/{wizard_id}/complete", response_model=SessionResponse)
async def complete(
    wizard_id: str,
    registry: WizardRegistry = Depends(get_wizard_registry),
) -> SessionResponse:
    wizard = _get_wizard(registry, wizard_id)
    try:
        await wizard.complete()
    except WizardStateError as e:
        raise _to_http(e)
    return _view(wizard)


@router.post("/{wizard_id}/side-exit", response_model=SessionResponse)
async def side_exit(
    wizard_id: str,
    registry: WizardRegistry = Depends(get_wizard_registry),
) -> SessionResponse:
    """Stash step 1 before leaving for a Broadcaster/Program creation flow."""
    wizard = _get_wizard(registry, wizard_id)
    try:
        await wizard.side_exit()
    except WizardStateError as e:
        raise _to_http(e)
    return _view(wizard)


@router.post("/{wizard_id}/side-return", response_model=SessionResponse)
async def side_return(
    wizard_id: str,
    data: SideReturnRequest,
    registry: WizardRegistry = Depends(get_wizard_registry),
) -> SessionResponse:
    wizard = _get_wizard(registry, wizard_id)
    try:
        await wizard.side_return(data.new_entity_kind, data.new_entity_name)
    except WizardStateError as e:
        raise _to_http(e)
    return _view(wizard)


@router.post(
    "/{wizard_id}/side-flow/broadcasters",
    response_model=SideFlowResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_broadcaster(
    wizard_id: str,
    data: CreateBroadcasterRequest,
    registry: WizardRegistry = Depends(get_wizard_registry),
) -> SideFlowResponse:
    wizard = _get_wizard(registry, wizard_id)
    try:
        broadcaster = await wizard.create_broadcaster(data.name, data.attributes)
    except (WizardStateError, BackingStoreError, ValueError) as e:
        raise _to_http(e)
    return SideFlowResponse(
        entity=ReferenceEntityResponse.from_entity(broadcaster),
        session=_view(wizard),
    )


@router.post(
    "/{wizard_id}/side-flow/programs",
    response_model=SideFlowResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_program(
    wizard_id: str,
    data: CreateProgramRequest,
    registry: WizardRegistry = Depends(get_wizard_registry),
) -> SideFlowResponse:
    wizard = _get_wizard(registry, wizard_id)
    try:
        program = await wizard.create_program(data.name, data.description, data.broadcaster_ids)
    except (WizardStateError, BackingStoreError, EntityNotFoundError, ValueError) as e:
        raise _to_http(e)
    return SideFlowResponse(
        entity=ReferenceEntityResponse.from_entity(program),
        session=_view(wizard),
    )


@router.delete(
    "/{wizard_id}/side-flow/programs/{program_id}/broadcasters/{broadcaster_id}",
    response_model=ReferenceEntityResponse,
)
async def remove_program_broadcaster(
    wizard_id: str,
    program_id: int,
    broadcaster_id: int,
    registry: WizardRegistry = Depends(get_wizard_registry),
) -> ReferenceEntityResponse:
    """Side flow: drop a broadcaster from a program without leaving the side flow."""
    wizard = _get_wizard(registry, wizard_id)
    try:
        program = await wizard.unlink_broadcaster(program_id, broadcaster_id)
    except (WizardStateError, BackingStoreError, EntityNotFoundError) as e:
        raise _to_http(e)
    return ReferenceEntityResponse.from_entity(program)


@router.get("/{wizard_id}/references/{kind}", response_model=list[ReferenceEntityResponse])
async def search_references(
    wizard_id: str,
    kind: EntityKind,
    q: str = "",
    registry: WizardRegistry = Depends(get_wizard_registry),
) -> list[ReferenceEntityResponse]:
    """Picker search over the cached broadcasters or programs."""
    wizard = _get_wizard(registry, wizard_id)
    entities = await wizard.search_references(kind, q)
    return [ReferenceEntityResponse.from_entity(e) for e in entities]
