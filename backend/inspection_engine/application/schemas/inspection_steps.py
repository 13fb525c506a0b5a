"""Pydantic schemas for the four wizard steps.

Each model lists exactly the inspection fields its step owns. The
defaults are the explicit empty values sent for unset fields, so the
models double as the field partition used by the save pipeline.
"""

import re
from typing import ClassVar

from pydantic import BaseModel, Field, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class StepFields(BaseModel):
    """Base for step schemas — unknown keys are ignored."""

    model_config = {"extra": "ignore"}

    # Steps with conditional requirements validate synchronously and
    # block advance() on failure.
    blocking_validation: ClassVar[bool] = False
    # Fields whose presence shows real user intent (guards auto-save).
    meaningful_fields: ClassVar[tuple[str, ...]] = ()
    # Payload keys owned by the step in addition to the declared fields.
    reference_fields: ClassVar[tuple[str, ...]] = ()


class Step1Fields(StepFields):
    """Program, broadcaster and site identity."""

    blocking_validation: ClassVar[bool] = True
    meaningful_fields: ClassVar[tuple[str, ...]] = (
        "program_name",
        "broadcaster_name",
        "station_type",
        "transmitting_site_name",
        "physical_location",
        "land_owner_name",
        "air_status",
        "off_air_reason",
    )
    reference_fields: ClassVar[tuple[str, ...]] = ("program", "broadcaster")

    program_name: str = ""
    air_status: str = "on_air"
    off_air_reason: str = Field("", validate_default=True)
    broadcaster_name: str = ""
    po_box: str = ""
    postal_code: str = ""
    town: str = ""
    location: str = ""
    street: str = ""
    phone_numbers: str = ""
    contact_name: str = ""
    contact_address: str = ""
    contact_phone: str = ""
    contact_email: str = ""
    station_type: str = ""
    transmitting_site_name: str = ""
    longitude: str = ""
    latitude: str = ""
    physical_location: str = ""
    physical_street: str = ""
    physical_area: str = ""
    altitude: str = ""
    land_owner_name: str = ""
    other_telecoms_operator: bool = False
    telecoms_operator_details: str = ""

    @field_validator("off_air_reason")
    @classmethod
    def _reason_required_when_off_air(cls, value: str, info: ValidationInfo) -> str:
        if info.data.get("air_status") == "off_air" and not value.strip():
            raise PydanticCustomError(
                "off_air_reason_required",
                "Reason for being OFF AIR is required when status is OFF AIR",
            )
        return value

    @field_validator("contact_email")
    @classmethod
    def _email_format(cls, value: str) -> str:
        if value and not _EMAIL_PATTERN.match(value.strip()):
            raise PydanticCustomError("invalid_email", "Invalid email format")
        return value


class Step2Fields(StepFields):
    """Tower information."""

    meaningful_fields: ClassVar[tuple[str, ...]] = (
        "tower_owner_name",
        "height_above_ground",
        "tower_type",
        "rust_protection",
        "manufacturer_name",
    )

    tower_owner_name: str = ""
    height_above_ground: str = ""
    above_building_roof: bool = False
    building_height: str = ""
    tower_type: str = ""
    tower_type_other: str = ""
    rust_protection: str = ""
    installation_year: str = ""
    manufacturer_name: str = ""
    model_number: str = ""
    maximum_wind_load: str = ""
    maximum_load_charge: str = ""
    has_insurance: bool = False
    insurance_company: str = ""
    has_concrete_base: bool = False
    has_lightning_protection: bool = False
    is_electrically_grounded: bool = False
    has_aviation_warning_light: bool = False
    has_other_antennas: bool = False
    other_antennas_details: str = ""


class Step3Fields(StepFields):
    """Exciter, amplifier and filter."""

    meaningful_fields: ClassVar[tuple[str, ...]] = (
        "exciter_manufacturer",
        "exciter_actual_reading",
        "amplifier_manufacturer",
        "amplifier_actual_reading",
        "transmit_frequency",
        "filter_type",
    )

    exciter_manufacturer: str = ""
    exciter_model_number: str = ""
    exciter_serial_number: str = ""
    exciter_nominal_power: str = ""
    exciter_actual_reading: str = ""
    amplifier_manufacturer: str = ""
    amplifier_model_number: str = ""
    amplifier_serial_number: str = ""
    amplifier_nominal_power: str = ""
    amplifier_actual_reading: str = ""
    rf_output_connector_type: str = ""
    frequency_range: str = ""
    transmit_frequency: str = ""
    frequency_stability: str = ""
    harmonics_suppression_level: str = ""
    spurious_emission_level: str = ""
    has_internal_audio_limiter: bool = False
    has_internal_stereo_coder: bool = False
    transmitter_catalog_attached: bool = False
    transmit_bandwidth: str = ""
    filter_type: str = ""
    filter_manufacturer: str = ""
    filter_model_number: str = ""
    filter_serial_number: str = ""
    filter_frequency: str = ""


class Step4Fields(StepFields):
    """Antenna system, studio link and closing remarks."""

    meaningful_fields: ClassVar[tuple[str, ...]] = (
        "height_on_tower",
        "antenna_type",
        "antenna_manufacturer",
        "antenna_gain",
        "stl_type",
        "technical_personnel",
        "other_observations",
    )

    height_on_tower: str = ""
    antenna_type: str = ""
    antenna_manufacturer: str = ""
    antenna_model_number: str = ""
    polarization: str = ""
    horizontal_pattern: str = ""
    beam_width_3db: str = ""
    max_gain_azimuth: str = ""
    horizontal_pattern_table: str = ""
    has_mechanical_tilt: bool = False
    mechanical_tilt_degree: str = ""
    has_electrical_tilt: bool = False
    electrical_tilt_degree: str = ""
    has_null_fill: bool = False
    null_fill_percentage: str = ""
    vertical_pattern_table: str = ""
    antenna_gain: str = ""
    estimated_antenna_losses: str = ""
    estimated_feeder_losses: str = ""
    estimated_multiplexer_losses: str = ""
    estimated_system_losses: str = ""
    effective_radiated_power: str = ""
    effective_radiated_power_dbw: str = ""
    antenna_catalog_attached: bool = False
    studio_manufacturer: str = ""
    studio_model_number: str = ""
    studio_serial_number: str = ""
    studio_frequency: str = ""
    studio_polarization: str = ""
    stl_type: str = ""
    signal_description: str = ""
    technical_personnel: str = ""
    other_observations: str = ""


STEP_SCHEMAS: dict[int, type[StepFields]] = {
    1: Step1Fields,
    2: Step2Fields,
    3: Step3Fields,
    4: Step4Fields,
}

# Top-level record fields no step owns.
TOP_LEVEL_FIELDS: tuple[str, ...] = ("status", "inspection_date", "completed_at")
