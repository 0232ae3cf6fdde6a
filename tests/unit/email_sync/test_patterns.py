"""
Tests for subject normalisation and text extraction.
"""

import pytest

from app.features.email_sync.domain.patterns import (
    extract_domain,
    extract_links,
    extract_po_number,
    normalize_subject,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Re: Proof for PO 44517", "proof for po 44517"),
        ("RE: FW: Fwd:   Proof   ready", "proof ready"),
        ("[IDP-2041] Re: Artwork", "artwork"),
        ("Re: [IDP-12]  Proof for PO 44517", "proof for po 44517"),
        ("  Plain subject  ", "plain subject"),
        ("", ""),
    ],
)
def test_normalize_subject(raw, expected):
    assert normalize_subject(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [
        "Re: Fwd: [IDP-7] Proof  for PO 1",
        "FW: re: hello",
        "Already normal",
        "[[IDP-1]IDP-2] foo",
        "RE:[[IDP-1]IDP-2] Re: foo",
        "Re: [IDP-3] Fwd: [IDP-4] foo",
    ],
)
def test_normalize_subject_is_idempotent(raw):
    once = normalize_subject(raw)
    assert normalize_subject(once) == once


@pytest.mark.parametrize(
    "raw",
    ["[[IDP-1]IDP-2] foo", "RE:[[IDP-1]IDP-2] Re: foo", "Re: [IDP-3] Fwd: [IDP-4] foo"],
)
def test_normalize_subject_strips_nested_tags_and_prefixes(raw):
    assert normalize_subject(raw) == "foo"


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Proof for PO 44517", "44517"),
        ("PO#44430 attached", "44430"),
        ("po44517", "44517"),
        ("Purchase Order # AB-100", "AB-100"),
        ("Re: TEL-2025-001-2 proof", "TEL-2025-001-2"),
        ("Job # J-2069 status", "J-2069"),
        ("Nothing useful here", None),
        (None, None),
    ],
)
def test_extract_po_number(text, expected):
    assert extract_po_number(text) == expected


def test_extract_po_number_first_pattern_wins():
    # Both an explicit PO and a job number are present; the PO pattern is tried first
    assert extract_po_number("Job # J-2069 for PO 555") == "555"


@pytest.mark.parametrize(
    ("email", "expected"),
    [
        ("Jane Buyer <jane@Acme.COM>", "acme.com"),
        ("ops@print-shop.co.uk", "print-shop.co.uk"),
        ("no-at-sign", None),
        (None, None),
    ],
)
def test_extract_domain(email, expected):
    assert extract_domain(email) == expected


def test_extract_links_keeps_order_and_duplicates():
    text = (
        "Proof: https://www.dropbox.com/s/abc/proof.pdf and "
        "https://we.tl/t-XYZ plus https://example.com/ignored "
        "again https://www.dropbox.com/s/abc/proof.pdf"
    )

    assert extract_links(text) == [
        "https://www.dropbox.com/s/abc/proof.pdf",
        "https://we.tl/t-XYZ",
        "https://www.dropbox.com/s/abc/proof.pdf",
    ]


def test_extract_links_google_drive():
    assert extract_links("see https://drive.google.com/file/d/1/view") == [
        "https://drive.google.com/file/d/1/view"
    ]


def test_extract_links_empty():
    assert extract_links(None) == []
    assert extract_links("no links") == []
