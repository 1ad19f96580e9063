import json
import logging

import pytest

from appstle_proxy.contracts import unpack_contract_details, unpack_item
from appstle_proxy.errors import UpstreamError


def test_unpack_all_fields():
    details = [{"title": "Tea"}]
    notes = [{"key": "k", "value": "v"}]
    order = {"orderId": 3}
    item = {
        "contractDetailsJSON": json.dumps(details),
        "orderNoteAttributes": json.dumps(notes),
        "lastSuccessfulOrder": json.dumps(order),
    }

    unpacked = unpack_item(dict(item))
    assert unpacked["contractDetails"] == details
    assert unpacked["orderNoteAttributesParsed"] == notes
    assert unpacked["lastSuccessfulOrderParsed"] == order


def test_empty_fields_are_left_alone():
    unpacked = unpack_item({"contractDetailsJSON": "", "orderNoteAttributes": None})
    assert "contractDetails" not in unpacked
    assert "orderNoteAttributesParsed" not in unpacked
    assert "lastSuccessfulOrderParsed" not in unpacked


def test_bad_field_logged_and_nulled(caplog):
    with caplog.at_level(logging.WARNING, logger="appstle_proxy.contracts"):
        unpacked = unpack_item({"orderNoteAttributes": "[oops", "lastSuccessfulOrder": '{"a": 1}'})

    assert unpacked["orderNoteAttributesParsed"] is None
    assert unpacked["lastSuccessfulOrderParsed"] == {"a": 1}
    assert "Failed to parse orderNoteAttributes" in caplog.text


def test_non_string_field_is_nulled():
    # already-decoded objects are not JSON strings
    unpacked = unpack_item({"contractDetailsJSON": {"title": "Tea"}})
    assert unpacked["contractDetails"] is None


def test_non_list_payload_is_an_upstream_error():
    with pytest.raises(UpstreamError):
        unpack_contract_details({"message": "no contracts"})


def test_non_object_items_kept():
    assert unpack_contract_details([1, "x"]) == [1, "x"]


def test_bare_scalars_decode_to_themselves():
    unpacked = unpack_item({"lastSuccessfulOrder": 5, "orderNoteAttributes": True})
    assert unpacked["lastSuccessfulOrderParsed"] == 5
    assert unpacked["orderNoteAttributesParsed"] is True


def test_empty_object_field_is_nulled():
    unpacked = unpack_item({"contractDetailsJSON": {}})
    assert unpacked["contractDetails"] is None
