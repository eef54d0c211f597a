import re

from clinic_import.commit.exceptions import RecordValidationError
from clinic_import.tabular.base import Row

# Patterns tried in order against a document's file name; the first capture wins.
PATIENT_REF_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"(\d+)"),
    re.compile(r"([A-Z]+\d+)"),
    re.compile(r"(\d+[A-Z]+)"),
    re.compile(r"(P\d+)", re.IGNORECASE),
    re.compile(r"([A-Za-z]+_[A-Za-z]+)"),
    re.compile(r"([A-Za-z]+\s[A-Za-z]+)"),
]


def _pick(row: Row, *headers: str, default: str = "") -> str:
    """First non-empty value among *headers*, stripped."""
    for header in headers:
        value = (row.get(header) or "").strip()
        if value:
            return value
    return default


def map_patient(row: Row) -> dict[str, str]:
    """Map a ChiroTouch patient row to clinic patient fields.

    Raises:
        RecordValidationError: if first or last name is missing.
    """
    record = {
        "firstName": _pick(row, "First Name", "FirstName", "first_name"),
        "lastName": _pick(row, "Last Name", "LastName", "last_name"),
        "dateOfBirth": _pick(row, "Date of Birth", "DOB", "date_of_birth"),
        "gender": _pick(row, "Gender", "Sex"),
        "phone": _pick(row, "Phone", "Phone Number", "phone_number"),
        "email": _pick(row, "Email", "email"),
        "street": _pick(row, "Address", "Street", "address"),
        "city": _pick(row, "City", "city"),
        "state": _pick(row, "State", "state"),
        "zipCode": _pick(row, "Zip", "Zip Code", "zip_code"),
        "recordNumber": _pick(row, "Patient ID", "PatientID", "Record Number", "patient_id"),
        "notes": _pick(row, "Notes", "notes"),
    }
    if not record["firstName"] or not record["lastName"]:
        raise RecordValidationError("Patient first name and last name are required")
    return record


def map_appointment(row: Row) -> dict[str, str]:
    """Map a ChiroTouch appointment row.

    Raises:
        RecordValidationError: if the appointment date is missing.
    """
    record = {
        "appointmentDate": _pick(row, "Appointment Date", "Date", "appointment_date"),
        "appointmentTime": _pick(
            row, "Time", "Appointment Time", "appointment_time", default="09:00"
        ),
        "patientRecordNumber": _pick(row, "Patient ID", "PatientID", "patient_id"),
        "visitType": _pick(row, "Visit Type", "Type", "visit_type", default="Regular Visit"),
        "duration": _pick(row, "Duration", "duration", default="30"),
        "providerName": _pick(row, "Provider", "Doctor", "provider"),
        "notes": _pick(row, "Notes", "notes"),
    }
    if not record["appointmentDate"]:
        raise RecordValidationError("Appointment date is required")
    return record


def map_ledger(row: Row) -> dict[str, str]:
    """Map a ChiroTouch ledger row.

    Raises:
        RecordValidationError: if the patient id is missing.
    """
    record = {
        "patientRecordNumber": _pick(row, "Patient ID", "PatientID", "patient_id"),
        "transactionDate": _pick(row, "Date", "Transaction Date", "transaction_date"),
        "transactionType": _pick(
            row, "Type", "Transaction Type", "transaction_type", default="Payment"
        ),
        "description": _pick(row, "Description", "description"),
        "amount": _pick(row, "Amount", "amount", default="0"),
        "paymentMethod": _pick(row, "Payment Method", "Method", "payment_method"),
        "notes": _pick(row, "Notes", "notes"),
    }
    if not record["patientRecordNumber"]:
        raise RecordValidationError("Ledger record requires a patient ID")
    return record


def extract_patient_ref(file_name: str) -> str | None:
    """Best-effort patient identifier from a chart note or scanned document name."""
    for pattern in PATIENT_REF_PATTERNS:
        match = pattern.search(file_name)
        if match:
            return match.group(1)
    return None
