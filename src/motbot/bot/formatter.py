"""Render one MOT History record and one VES record as a single report.

The report uses Telegram's legacy Markdown: a bold label per line and the
value in a code span. Sections are always emitted in the same order
(vehicle information, tax information, MOT history); collections with no
entries produce no section at all.
"""

from __future__ import annotations

from datetime import datetime

from motbot.exceptions import FormatError
from motbot.models.mot import Defect, MotTest, MotVehicle
from motbot.models.ves import VesVehicle

_SOURCE_DATE_FORMAT = "%Y-%m-%d"
_DISPLAY_DATE_FORMAT = "%d.%m.%Y"
_MISSING = "N/A"

RESULT_PASS = "✅"
RESULT_FAIL = "❌"

DEFECT_FAIL = "❌"
DEFECT_ADVISORY = "⚠️"
DEFECT_USER_ENTERED = "📝"
DEFECT_REPAIRED = "🔧"
DEFECT_DANGEROUS = "🚨"
DEFECT_OTHER = "ℹ️"

_DEFECT_INDICATORS: dict[str, str] = {
    "FAIL": DEFECT_FAIL,
    "MAJOR": DEFECT_FAIL,
    "DANGEROUS": DEFECT_DANGEROUS,
    "ADVISORY": DEFECT_ADVISORY,
    "MINOR": DEFECT_ADVISORY,
    "USER ENTERED": DEFECT_USER_ENTERED,
    "PRS": DEFECT_REPAIRED,
}


def format_date(value: str) -> str:
    """Render a ``YYYY-MM-DD[...]`` date as ``DD.MM.YYYY``.

    Anything that does not start with a valid ISO date is returned unchanged.
    """
    if len(value) < 10:
        return value
    try:
        parsed = datetime.strptime(value[:10], _SOURCE_DATE_FORMAT)
    except ValueError:
        return value
    return parsed.strftime(_DISPLAY_DATE_FORMAT)


def result_indicator(test_result: str) -> str:
    return RESULT_FAIL if test_result.strip().upper() == "FAILED" else RESULT_PASS


def defect_indicator(defect: Defect) -> str:
    if defect.dangerous:
        return DEFECT_DANGEROUS
    return _DEFECT_INDICATORS.get(defect.type.strip().upper(), DEFECT_OTHER)


def _code(value: object) -> str:
    text = "" if value is None else str(value).strip()
    # A backtick would close the code span early.
    return f"`{text.replace('`', chr(39)) or _MISSING}`"


def _field(emoji: str, label: str, value: object) -> str:
    return f"{emoji} *{label}:* {_code(value)}"


def _vehicle_lines(mot: MotVehicle, ves: VesVehicle) -> list[str]:
    lines = [
        "🚗 *Vehicle Information*",
        "",
        _field("📝", "Registration", mot.registration or ves.registration_number),
        _field("🏭", "Make", mot.make or ves.make),
        _field("🚘", "Model", mot.model),
        _field("📅", "First Registered", format_date(mot.first_used_date)),
        _field("⛽", "Fuel Type", mot.fuel_type or ves.fuel_type),
        _field("🎨", "Colour", mot.primary_colour or ves.colour),
        _field("🔧", "Engine Size", mot.engine_size),
        _field("🛞", "Wheelplan", ves.wheelplan),
        _field("🌍", "Euro Status", ves.euro_status),
        _field("📄", "Last V5C Issued", format_date(ves.date_of_last_v5c_issued)),
    ]
    if mot.mot_test_due_date:
        lines.append(_field("⏰", "MOT Due", format_date(mot.mot_test_due_date)))
    return lines


def _tax_lines(ves: VesVehicle) -> list[str]:
    lines = [
        "",
        "💰 *Tax Information*",
        "",
        _field("📊", "Status", ves.tax_status),
    ]
    if ves.tax_due_date:
        lines.append(_field("📅", "Due Date", format_date(ves.tax_due_date)))
    return lines


def _test_lines(test: MotTest) -> list[str]:
    lines = [
        _field("📅", "Test Date", format_date(test.completed_date)),
        _field(result_indicator(test.test_result), "Result", test.test_result),
    ]
    if test.expiry_date:
        lines.append(_field("⏳", "Expiry", format_date(test.expiry_date)))
    if test.odometer_value:
        mileage = f"{test.odometer_value} {test.odometer_unit}".strip()
        lines.append(_field("📏", "Mileage", mileage))
    if test.defects:
        lines.append("⚠️ *Defects:*")
        lines.extend(f"  {defect_indicator(defect)} {_code(defect.text)}" for defect in test.defects)
    return lines


def _history_lines(mot: MotVehicle) -> list[str]:
    if not mot.mot_tests:
        return []
    lines = ["", "🔧 *MOT History*"]
    for test in mot.mot_tests:
        lines.append("")
        lines.extend(_test_lines(test))
    return lines


def format_report(mot: MotVehicle, ves: VesVehicle) -> str:
    """Combine both records into one report.

    Pure and deterministic: the same pair of records always produces the
    same text.
    """
    try:
        lines = _vehicle_lines(mot, ves) + _tax_lines(ves) + _history_lines(mot)
    except (AttributeError, TypeError, ValueError) as exc:
        raise FormatError(f"Cannot render report: {exc}") from exc
    return "\n".join(lines)
