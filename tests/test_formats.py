"""
tests.test_formats

XML helpers: JSON view, schemaLocation, xlink stripping and field extraction.
"""

from __future__ import annotations

from lxml import etree

from conftest import iso_record
from mdcatalog.formats.documents import XSI_SCHEMA_LOCATION, parse
from mdcatalog.formats.extract import index_fields, online_resources, thumbnails
from mdcatalog.formats.jsonview import xml_to_json
from mdcatalog.formats.schema import add_schema_location
from mdcatalog.formats.xlink import strip_xlink_attributes


def test_json_view_mapping() -> None:
    root = etree.fromstring(
        b'<r:root xmlns:r="urn:r" id="1">'
        b"<r:keyword>a</r:keyword><r:keyword>b</r:keyword>"
        b'<r:name lang="en">River</r:name>'
        b"<r:empty/>"
        b"</r:root>"
    )
    assert xml_to_json(root) == {
        "r:root": {
            "@xmlns:r": "urn:r",
            "@id": "1",
            "r:keyword": ["a", "b"],
            "r:name": {"@lang": "en", "#text": "River"},
            "r:empty": "",
        }
    }


def test_json_view_ignores_comments() -> None:
    root = etree.fromstring(b"<root><!-- note --><leaf>x</leaf></root>")
    assert xml_to_json(root) == {"root": {"leaf": "x"}}


def test_add_schema_location_only_once() -> None:
    root = parse(iso_record("u-1", "Title"))
    assert add_schema_location(root, "http://a http://a.xsd")
    assert not add_schema_location(root, "http://b http://b.xsd")
    assert root.get(XSI_SCHEMA_LOCATION) == "http://a http://a.xsd"
    assert not add_schema_location(parse(iso_record("u-2", "Title")), None)


def test_strip_xlink_attributes() -> None:
    root = parse(iso_record("u-1", "Title"))
    assert strip_xlink_attributes(root) == 1
    assert strip_xlink_attributes(root) == 0


def test_index_fields_for_iso_records() -> None:
    fields = index_fields(parse(iso_record("c-1", "Child", parent="p-1")), "iso19139")
    assert fields.title == "Child"
    assert fields.parent_uuid == "p-1"
    assert fields.resource_type == "dataset"
    assert fields.operates_on == []

    service = parse(iso_record("s-1", "WMS", level="service", operates_on=("a", "b", "a")))
    fields = index_fields(service, "iso19139")
    assert fields.resource_type == "service"
    assert fields.operates_on == ["a", "b"]


def test_index_fields_for_dublin_core() -> None:
    root = etree.fromstring(
        b'<simpledc xmlns:dc="http://purl.org/dc/elements/1.1/" '
        b'xmlns:dct="http://purl.org/dc/terms/">'
        b"<dc:title>Rainfall</dc:title><dct:isPartOf>series-1</dct:isPartOf>"
        b"</simpledc>"
    )
    fields = index_fields(root, "dublin-core")
    assert (fields.title, fields.parent_uuid, fields.resource_type) == (
        "Rainfall",
        "series-1",
        "dataset",
    )


def test_links_and_thumbnails() -> None:
    root = parse(
        iso_record("u-1", "T", online="https://example.org/d.zip", thumbnail="https://example.org/t.png")
    )
    assert online_resources(root) == [
        {
            "url": "https://example.org/d.zip",
            "protocol": "WWW:LINK",
            "name": "Download page",
            "description": None,
        }
    ]
    assert thumbnails(root) == [{"url": "https://example.org/t.png", "title": "large_thumbnail"}]
