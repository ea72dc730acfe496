"""Identity Documents — normalization and validation of user-supplied identifiers.

Invariants:
    - normalize_document is PURE and returns the canonical form stored in the DB
    - CPF: 11 digits after stripping '.', '-' and spaces; not all equal; both check digits valid
    - Passport: 6-9 alphanumerics, upper-cased
    - National id: 5-20 alphanumerics, upper-cased
    - Every violation raises AppError.bad_request(INVALID_DOCUMENT)
"""

import re

from app.core.domain_types import DocumentType
from app.core.errors import AppError


_SEPARATORS = re.compile(r"[\s.\-/]")
_PASSPORT = re.compile(r"^[A-Z0-9]{6,9}$")
_NATIONAL_ID = re.compile(r"^[A-Z0-9]{5,20}$")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _cpf_check_digit(digits: str) -> int:
    weight = len(digits) + 1
    total = sum(int(d) * (weight - i) for i, d in enumerate(digits))
    remainder = (total * 10) % 11
    return 0 if remainder == 10 else remainder


def is_valid_cpf(cpf: str) -> bool:
    """Validate a bare 11-digit CPF string (check digits included)."""
    if len(cpf) != 11 or not cpf.isdigit():
        return False
    if cpf == cpf[0] * 11:
        return False
    first = _cpf_check_digit(cpf[:9])
    second = _cpf_check_digit(cpf[:10])
    return cpf[9] == str(first) and cpf[10] == str(second)


def normalize_document(
    document_type: DocumentType | str, number: str,
) -> str:
    """Return the canonical document number or raise AppError (400)."""
    document_type = DocumentType(document_type)
    cleaned = _SEPARATORS.sub("", number).upper()

    if document_type == DocumentType.CPF:
        if not is_valid_cpf(cleaned):
            raise _invalid(document_type, "CPF must have 11 digits with valid check digits")
        return cleaned

    pattern = _PASSPORT if document_type == DocumentType.PASSPORT else _NATIONAL_ID
    if not pattern.match(cleaned):
        raise _invalid(document_type, f"Malformed {document_type.value} number")
    return cleaned


def _invalid(document_type: DocumentType, message: str) -> AppError:
    return AppError.bad_request(
        message,
        code="INVALID_DOCUMENT",
        details={"document_type": document_type.value},
    )
