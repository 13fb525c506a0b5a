"""Effective Radiated Power — pure recomputation of the derived Step-4 fields.

    P_dBW   = 10 * log10(P)
    ERP_dBW = P_dBW + G - L
    ERP_kW  = 10^(ERP_dBW / 10) / 1000

P is the transmitter power in watts (amplifier reading if positive, else
exciter reading), G the antenna gain in dBi and L the total loss in dB
(sum of itemised losses if any is positive, else the aggregate system
losses). When P is unavailable the outputs are cleared.
"""

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

ERP_KW_FIELD = "effective_radiated_power"
ERP_DBW_FIELD = "effective_radiated_power_dbw"
DERIVED_FIELDS: frozenset[str] = frozenset({ERP_KW_FIELD, ERP_DBW_FIELD})

POWER_FIELDS: tuple[str, ...] = ("amplifier_actual_reading", "exciter_actual_reading")
GAIN_FIELD = "antenna_gain"
ITEMISED_LOSS_FIELDS: tuple[str, ...] = (
    "estimated_antenna_losses",
    "estimated_feeder_losses",
    "estimated_multiplexer_losses",
)
SYSTEM_LOSS_FIELD = "estimated_system_losses"

# Any change to one of these triggers a recomputation.
ERP_INPUT_FIELDS: frozenset[str] = frozenset(
    {GAIN_FIELD, SYSTEM_LOSS_FIELD, *ITEMISED_LOSS_FIELDS, *POWER_FIELDS}
)

_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


@dataclass(frozen=True)
class ErpResult:
    power_watts: float
    power_dbw: float
    gain_dbi: float
    total_loss_db: float
    erp_dbw: float
    erp_kw: float


def parse_number(raw: Any) -> float | None:
    """Read the leading number of a field value ("12.5 dBi" → 12.5).

    Returns None when no number can be read. Booleans are not numbers.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        match = _LEADING_NUMBER.match(str(raw))
        if not match:
            return None
        value = float(match.group(1))
    return value if math.isfinite(value) else None


def transmitter_power(values: Mapping[str, Any]) -> float | None:
    """Amplifier reading if positive, else exciter reading if positive."""
    for key in POWER_FIELDS:
        power = parse_number(values.get(key))
        if power is not None and power > 0:
            return power
    return None


def total_loss(values: Mapping[str, Any]) -> float:
    itemised = [parse_number(values.get(key)) or 0.0 for key in ITEMISED_LOSS_FIELDS]
    if any(loss > 0 for loss in itemised):
        return sum(itemised)
    return parse_number(values.get(SYSTEM_LOSS_FIELD)) or 0.0


def calculate_erp(power_watts: float | None, gain_dbi: float, loss_db: float) -> ErpResult | None:
    """Apply the ERP formula; None when there is no usable power."""
    if power_watts is None or power_watts <= 0:
        return None
    power_dbw = 10 * math.log10(power_watts)
    erp_dbw = power_dbw + gain_dbi - loss_db
    try:
        erp_kw = math.pow(10, erp_dbw / 10) / 1000
    except OverflowError:
        return None
    if not math.isfinite(erp_kw) or erp_kw <= 0:
        return None
    return ErpResult(
        power_watts=power_watts,
        power_dbw=power_dbw,
        gain_dbi=gain_dbi,
        total_loss_db=loss_db,
        erp_dbw=erp_dbw,
        erp_kw=erp_kw,
    )


def compute_erp(values: Mapping[str, Any]) -> ErpResult | None:
    """Compute ERP from a merged view of Step-3 and Step-4 values."""
    return calculate_erp(
        transmitter_power(values),
        parse_number(values.get(GAIN_FIELD)) or 0.0,
        total_loss(values),
    )


def erp_field_values(values: Mapping[str, Any]) -> dict[str, str]:
    """The two derived fields, formatted for the form; empty strings when cleared."""
    result = compute_erp(values)
    if result is None:
        return {ERP_KW_FIELD: "", ERP_DBW_FIELD: ""}
    return {
        ERP_KW_FIELD: f"{result.erp_kw:.3f}",
        ERP_DBW_FIELD: f"{result.erp_dbw:.2f}",
    }
