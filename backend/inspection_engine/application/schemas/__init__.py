from .inspection_steps import (
    STEP_SCHEMAS,
    TOP_LEVEL_FIELDS,
    Step1Fields,
    Step2Fields,
    Step3Fields,
    Step4Fields,
    StepFields,
)
from .wizard import (
    AdvisorySchema,
    CreateBroadcasterRequest,
    CreateProgramRequest,
    FieldChangeRequest,
    ReferenceEntityResponse,
    SessionResponse,
    SideFlowResponse,
    SideReturnRequest,
    StartWizardRequest,
)

__all__ = [
    "STEP_SCHEMAS",
    "TOP_LEVEL_FIELDS",
    "Step1Fields",
    "Step2Fields",
    "Step3Fields",
    "Step4Fields",
    "StepFields",
    "AdvisorySchema",
    "CreateBroadcasterRequest",
    "CreateProgramRequest",
    "FieldChangeRequest",
    "ReferenceEntityResponse",
    "SessionResponse",
    "SideFlowResponse",
    "SideReturnRequest",
    "StartWizardRequest",
]
