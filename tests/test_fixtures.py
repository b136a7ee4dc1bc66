import json
from pathlib import Path

import pytest
from krn import (
    ERROR_CLASSES,
    Krn,
    is_valid_resource_id,
    is_valid_service,
    is_valid_version,
    new_child,
    safe_resource_id,
)

FIXTURES = json.loads((Path(__file__).parent / "fixtures" / "testcases.json").read_text())
OPERATIONS = FIXTURES["operations"]
VALIDATION = FIXTURES["validation"]

_ACCESSORS = {
    "service": lambda k: k.service,
    "version": lambda k: k.version,
    "depth": lambda k: k.depth,
    "basename": lambda k: k.basename,
    "basenameCollection": lambda k: k.basename_collection,
    "fullDomain": lambda k: k.full_domain,
    "path": lambda k: k.path,
    "segments": lambda k: [{"collection": s.collection, "resourceId": s.resource_id} for s in k.segments],
}


def _name(case):
    return case["name"]


@pytest.mark.parametrize("case", FIXTURES["parse"]["valid"], ids=_name)
def test_parse_valid(case):
    k = Krn.from_string(case["input"])
    for field, expected in case["expected"].items():
        assert _ACCESSORS[field](k) == expected, field


@pytest.mark.parametrize("case", FIXTURES["parse"]["invalid"], ids=_name)
def test_parse_invalid(case):
    with pytest.raises(ERROR_CLASSES[case["expectedError"]]) as exc_info:
        Krn.from_string(case["input"])
    assert exc_info.value.code == case["expectedError"]


@pytest.mark.parametrize("s", FIXTURES["roundTrip"])
def test_round_trip(s):
    assert str(Krn.from_string(s)) == s


def test_error_codes_are_known():
    assert sorted(FIXTURES["errorCodes"]) == sorted(ERROR_CLASSES)


def test_validation_resource_id():
    for s in VALIDATION["resourceId"]["valid"]:
        assert is_valid_resource_id(s), s
    for s in VALIDATION["resourceId"]["invalid"]:
        assert not is_valid_resource_id(s), s

    max_length = VALIDATION["resourceId"]["maxLength"]
    assert is_valid_resource_id("a" * max_length)
    assert not is_valid_resource_id("a" * (max_length + 1))


def test_validation_version():
    for s in VALIDATION["version"]["valid"]:
        assert is_valid_version(s), s
    for s in VALIDATION["version"]["invalid"]:
        assert not is_valid_version(s), s


def test_validation_service():
    for s in VALIDATION["service"]["valid"]:
        assert is_valid_service(s), s
    for s in VALIDATION["service"]["invalid"]:
        assert not is_valid_service(s), s


@pytest.mark.parametrize("case", FIXTURES["safeResourceId"], ids=lambda c: c["input"])
def test_safe_resource_id(case):
    assert safe_resource_id(case["input"]) == case["expected"]


@pytest.mark.parametrize("case", OPERATIONS["parent"], ids=lambda c: c["input"])
def test_parent(case):
    parent = Krn.from_string(case["input"]).parent()
    if case["expected"] is None:
        assert parent is None
    else:
        assert str(parent) == case["expected"]


@pytest.mark.parametrize("case", OPERATIONS["withVersion"], ids=lambda c: c["input"])
def test_with_version(case):
    assert str(Krn.from_string(case["input"]).with_version(case["version"])) == case["expected"]


@pytest.mark.parametrize("case", OPERATIONS["withoutVersion"], ids=lambda c: c["input"])
def test_without_version(case):
    assert str(Krn.from_string(case["input"]).without_version()) == case["expected"]


@pytest.mark.parametrize("case", OPERATIONS["withService"], ids=lambda c: c["input"])
def test_with_service(case):
    assert str(Krn.from_string(case["input"]).with_service(case["service"])) == case["expected"]


@pytest.mark.parametrize("case", OPERATIONS["withoutService"], ids=lambda c: c["input"])
def test_without_service(case):
    assert str(Krn.from_string(case["input"]).without_service()) == case["expected"]


@pytest.mark.parametrize("case", OPERATIONS["child"], ids=lambda c: c["input"])
def test_child(case):
    child = new_child(Krn.from_string(case["input"]), case["collection"], case["resourceId"])
    assert str(child) == case["expected"]


@pytest.mark.parametrize("case", OPERATIONS["resourceId"], ids=lambda c: c["input"] + ":" + c["collection"])
def test_resource_id(case):
    k = Krn.from_string(case["input"])
    if case["expectedError"]:
        with pytest.raises(ERROR_CLASSES[case["expectedError"]]):
            k.resource_id(case["collection"])
    else:
        assert k.resource_id(case["collection"]) == case["expected"]
