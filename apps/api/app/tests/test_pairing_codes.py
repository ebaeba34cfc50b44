import pytest

from app.modules.pairing.codes import (
    CODE_ALPHABET,
    CODE_LENGTH,
    generate_code,
    is_well_formed,
    mask_code,
    normalize_code,
)


def test_alphabet_excludes_ambiguous_characters() -> None:
    assert len(set(CODE_ALPHABET)) == len(CODE_ALPHABET)
    assert not set("0O1IL") & set(CODE_ALPHABET)
    assert CODE_ALPHABET == CODE_ALPHABET.upper()


def test_generate_code_uses_alphabet_and_length() -> None:
    codes = {generate_code() for _ in range(500)}

    assert all(len(code) == CODE_LENGTH for code in codes)
    assert all(is_well_formed(code) for code in codes)
    # 31**6 possible codes; 500 draws colliding heavily would mean a broken source.
    assert len(codes) > 490


def test_generate_code_draws_from_secrets(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("app.modules.pairing.codes.secrets.choice", lambda seq: seq[-1])

    assert generate_code() == CODE_ALPHABET[-1] * CODE_LENGTH


def test_normalize_code_strips_and_uppercases() -> None:
    assert normalize_code("  abc23k\n") == "ABC23K"


@pytest.mark.parametrize(
    "code",
    ["", "ABC", "ABCDEFG", "ABCDE0", "ABCDEO", "ABCDE1", "ABCDEI", "ABCDEL", "ABCDE!", "abcdef"],
)
def test_is_well_formed_rejects(code: str) -> None:
    assert is_well_formed(code) is False


def test_is_well_formed_accepts_alphabet_codes() -> None:
    assert is_well_formed("ABC234") is True
    assert is_well_formed("ZZ9988") is True


def test_mask_code_keeps_last_two_characters() -> None:
    assert mask_code("ABC234") == "****34"
