from .inspection_repository import InspectionRepository
from .reference_repositories import BroadcasterRepository, ProgramRepository
from .draft_slot import DraftSlot
from .scheduler import Scheduler, TimerHandle

__all__ = [
    "InspectionRepository",
    "BroadcasterRepository",
    "ProgramRepository",
    "DraftSlot",
    "Scheduler",
    "TimerHandle",
]
