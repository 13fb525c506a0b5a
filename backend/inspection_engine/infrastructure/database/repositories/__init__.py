from .draft_slot_repository import SQLAlchemyDraftSlot

__all__ = ["SQLAlchemyDraftSlot"]
