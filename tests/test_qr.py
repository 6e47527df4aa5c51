from urllib.parse import parse_qs, urlsplit

import pytest

from centerline.core.qr import QrLinkBuilder, deep_link_ref, host_of, resolve_deep_link


def test_local_origin_without_override_links_to_itself():
    builder = QrLinkBuilder("http://localhost:3000")
    assert builder.deep_link("P-07") == "http://localhost:3000/?p=P-07"
    assert builder.needs_public_url_setup


def test_local_origin_uses_public_override():
    builder = QrLinkBuilder("http://127.0.0.1:3000", public_base_url="http://192.168.1.20:3000")
    assert builder.deep_link("P-07") == "http://192.168.1.20:3000/?p=P-07"
    assert not builder.needs_public_url_setup


def test_override_pointing_at_localhost_still_needs_setup():
    builder = QrLinkBuilder("http://localhost:3000", public_base_url="http://localhost:8080")
    assert builder.needs_public_url_setup


def test_non_local_origin_ignores_override():
    builder = QrLinkBuilder("https://line3.plant.example", public_base_url="http://192.168.1.20:3000")
    assert builder.deep_link("P-07") == "https://line3.plant.example/?p=P-07"
    assert not builder.needs_public_url_setup


def test_single_trailing_slash_is_stripped():
    builder = QrLinkBuilder("http://localhost:3000", public_base_url="http://10.0.0.5:3000/")
    assert builder.deep_link("P-01") == "http://10.0.0.5:3000/?p=P-01"


def test_ids_are_percent_encoded():
    builder = QrLinkBuilder("https://line3.plant.example")
    assert builder.deep_link("LSK B/1&2") == "https://line3.plant.example/?p=LSK%20B%2F1%262"


def test_ipv6_loopback_counts_as_local():
    assert host_of("http://[::1]:3000") == "::1"
    assert QrLinkBuilder("http://[::1]:3000").is_local_host


def test_qr_image_request_carries_encoded_link():
    builder = QrLinkBuilder("https://line3.plant.example", margin=2, ecc="H", image_format="png")
    url = builder.qr_image_url("P-07", size=300)
    params = parse_qs(urlsplit(url).query)
    assert url.startswith("https://api.qrserver.com/v1/create-qr-code/?")
    assert params["size"] == ["300x300"]
    assert params["data"] == ["https://line3.plant.example/?p=P-07"]
    assert params["margin"] == ["2"]
    assert params["ecc"] == ["H"]
    assert params["format"] == ["png"]


def test_qr_image_size_must_be_positive():
    with pytest.raises(ValueError):
        QrLinkBuilder("http://localhost:3000").qr_image_url("P-01", size=0)


def test_builder_from_config_reads_qr_service_settings():
    builder = QrLinkBuilder.from_config("http://localhost:3000")
    assert builder.endpoint == "https://api.qrserver.com/v1/create-qr-code/"
    assert builder.image_format == "svg"
    assert builder.margin == 4


@pytest.mark.parametrize("query, expected", [
    ("?p=P-07", "P-07"),
    ("point=LSK-B1", "LSK-B1"),
    ("?p=", None),
    ("", None),
])
def test_deep_link_ref(query, expected):
    assert deep_link_ref(query) == expected


def test_resolve_deep_link_prefers_id_then_number(point_factory):
    points = [point_factory("7", 1), point_factory("P-07", 7)]
    assert resolve_deep_link("?p=7", points).id == "7"
    assert resolve_deep_link("?p=1", points).id == "7"
    assert resolve_deep_link("?p=P-07", points).number == 7
    assert resolve_deep_link("?p=nope", points) is None
