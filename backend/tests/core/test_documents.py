"""Identity Documents — CPF checksum and per-type normalization."""

import pytest

from app.core.documents import is_valid_cpf, normalize_document, normalize_email
from app.core.domain_types import DocumentType
from app.core.errors import AppError


def test_normalize_email_strips_and_lowercases():
    assert normalize_email("  Ana@Example.COM ") == "ana@example.com"


@pytest.mark.parametrize("cpf", ["52998224725", "11144477735"])
def test_valid_cpfs(cpf):
    assert is_valid_cpf(cpf)


@pytest.mark.parametrize("cpf", [
    "52998224726",   # wrong second digit
    "52998224715",   # wrong first digit
    "11111111111",   # repeated digits
    "5299822472",    # too short
    "5299822472a",
])
def test_invalid_cpfs(cpf):
    assert not is_valid_cpf(cpf)


def test_cpf_is_normalized_to_digits():
    assert normalize_document("cpf", "529.982.247-25") == "52998224725"
    assert normalize_document(DocumentType.CPF, " 111 444 777 35 ") == "11144477735"


def test_invalid_cpf_raises_bad_request():
    with pytest.raises(AppError) as exc_info:
        normalize_document("cpf", "529.982.247-26")
    assert exc_info.value.http_status == 400
    assert exc_info.value.code == "INVALID_DOCUMENT"
    assert exc_info.value.details == {"document_type": "cpf"}


def test_passport_is_upper_cased():
    assert normalize_document("passport", "ab 123456") == "AB123456"


@pytest.mark.parametrize("number", ["AB12", "AB12345678"])
def test_passport_length_enforced(number):
    with pytest.raises(AppError):
        normalize_document("passport", number)


def test_national_id_accepts_separators():
    assert normalize_document("national_id", "12.345.678-x") == "12345678X"


def test_national_id_rejects_symbols():
    with pytest.raises(AppError):
        normalize_document("national_id", "1234#5678")
