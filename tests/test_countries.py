import pytest

from services.countries import CountryCode, canonicalize, clean_country_name


@pytest.mark.parametrize("raw, key", [
    ("UK", "uk"),
    ("U.K.", "uk"),
    ("united kingdom", "uk"),
    (" USA ", "usa"),
    ("United States of America", "usa"),
    ('["Dubai"]', "uae"),
    ("Germany", "germany"),
    ("New   Zealand", "new zealand"),
])
def test_canonicalize(raw, key):
    assert canonicalize(raw) == key


def test_blank_country_is_empty():
    assert canonicalize(None) == ""
    assert canonicalize("  ") == ""
    assert clean_country_name("['France']") == "France"


def test_country_code_parse():
    code = CountryCode.parse("U.S.A.")
    assert code.key == "usa"
    assert str(code) == "usa"
    assert code.display_name == "United States"
    assert CountryCode.parse(code) is code
    assert CountryCode.parse("ireland").display_name == "Ireland"


def test_country_code_requires_value():
    with pytest.raises(ValueError):
        CountryCode.parse("")
