import re

from transfer_harness.constants import PRNG_MODULUS, PRNG_MULTIPLIER
from transfer_harness.pages import (
    DOWNLOAD_HTML,
    LENGTH_PLACEHOLDER,
    NUM_PLACEHOLDER,
    UPLOAD_HTML,
    download_page,
    upload_page,
)


def test_no_residual_placeholders():
    for page in (upload_page(1024, 3), download_page(1024, 3)):
        assert not re.search(r"\b(LENGTH|NUM)\b", page)


def test_every_placeholder_substituted():
    page = upload_page(1024, 3)
    assert page.count("1024") == UPLOAD_HTML.count(LENGTH_PLACEHOLDER)
    assert re.findall(r"i < (\w+);", page) == ["1024", "3"]

    page = download_page(77, 5)
    assert page.count("77") == DOWNLOAD_HTML.count(LENGTH_PLACEHOLDER)
    assert "nOK === 5" in page
    assert DOWNLOAD_HTML.count(NUM_PLACEHOLDER) == 2


def test_pages_embed_same_recurrence():
    for page in (upload_page(1, 1), download_page(1, 1)):
        assert f"seed * {PRNG_MULTIPLIER} % {PRNG_MODULUS}" in page
        assert "var seed = 1;" in page


def test_download_page_uses_get():
    assert 'req.open("GET", "/prdata?len="' in download_page(10, 1)
    assert 'req.open("POST", "/uploadhandler?len="' in upload_page(10, 1)
