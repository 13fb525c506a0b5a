from .debounce_timer import DebounceTimer
from .draft_continuity import DraftContinuityManager
from .entity_resolution_service import EntityResolutionService, ResolvedReferences
from .entity_store import EntityStore
from .field_partitioner import FieldPartitioner
from .inspection_wizard import InspectionWizard
from .reference_entity_service import ReferenceEntityService
from .save_pipeline import SavePipeline, SaveResult
from .session_controller import NavigationOutcome, SessionController, WizardContext
from .wizard_registry import WizardRegistry

__all__ = [
    "DebounceTimer",
    "DraftContinuityManager",
    "EntityResolutionService",
    "ResolvedReferences",
    "EntityStore",
    "FieldPartitioner",
    "InspectionWizard",
    "ReferenceEntityService",
    "SavePipeline",
    "SaveResult",
    "NavigationOutcome",
    "SessionController",
    "WizardContext",
    "WizardRegistry",
]
