"""In-process registry of running wizards, addressed by an opaque id."""

import logging
import uuid
from collections.abc import Callable

from inspection_engine.application.services.inspection_wizard import InspectionWizard
from inspection_engine.domain.exceptions import EntityNotFoundError

logger = logging.getLogger(__name__)


class WizardRegistry:
    def __init__(self, factory: Callable[[str], InspectionWizard]):
        self._factory = factory
        self._wizards: dict[str, InspectionWizard] = {}

    def create(self) -> InspectionWizard:
        wizard_id = uuid.uuid4().hex
        wizard = self._factory(wizard_id)
        self._wizards[wizard_id] = wizard
        logger.info("Registered wizard %s", wizard_id)
        return wizard

    def get(self, wizard_id: str) -> InspectionWizard:
        wizard = self._wizards.get(wizard_id)
        if wizard is None:
            raise EntityNotFoundError("Wizard", wizard_id)
        return wizard

    def discard(self, wizard_id: str) -> None:
        wizard = self.get(wizard_id)
        wizard.close()
        del self._wizards[wizard_id]
        logger.info("Discarded wizard %s", wizard_id)

    def __len__(self) -> int:
        return len(self._wizards)

    async def shutdown(self) -> None:
        """Let in-flight saves finish, then drop every wizard."""
        for wizard in list(self._wizards.values()):
            wizard.close()
            await wizard.drain()
        self._wizards.clear()
