"""Tests for podspec document parsing and validation."""

import json

import httpx
import pytest

from podtrunk.services.validator import SpecificationDocument, SubmissionValidator


@pytest.fixture
def validator():
    return SubmissionValidator(timeout=1.0)


@pytest.mark.parametrize("raw", ["not json", "[1, 2, 3]", '"AFNetworking"', ""])
def test_from_json_rejects_non_objects(raw):
    assert SpecificationDocument.from_json(raw) is None


def test_from_json_exposes_name_and_version(spec_json):
    doc = SpecificationDocument.from_json(spec_json)
    assert doc.name == "AFNetworking"
    assert doc.version == "1.2.0"
    assert doc.source["tag"] == "1.2.0"


def test_complete_document_is_valid(validator, spec_json):
    result = validator.validate(SpecificationDocument.from_json(spec_json))
    assert result.valid
    assert result.errors == []
    assert result.warnings == []
    assert result.as_details() == {}


def test_missing_required_attributes_are_errors(validator):
    result = validator.validate(SpecificationDocument({"summary": "x"}))
    assert not result.valid
    assert "Missing required attribute `name`." in result.errors
    assert "Missing required attribute `version`." in result.errors
    assert "Missing required attribute `source`." in result.errors


def test_messages_have_prefixes_removed(validator):
    result = validator.validate(SpecificationDocument({"name": "A", "version": "1.0", "source": {"git": "x"}}))
    assert result.valid
    assert all(not w.startswith("[") for w in result.warnings)
    assert "Missing recommended attribute `license`." in result.warnings
    assert result.as_details() == {"warnings": result.warnings}


def test_source_needs_a_location(validator):
    result = validator.validate(SpecificationDocument({"name": "A", "version": "1.0", "source": {"tag": "1.0"}}))
    assert result.errors == ["The source should specify a `git` or `http` location."]


def test_malformed_name_and_version(validator):
    doc = SpecificationDocument({"name": "My Pod", "version": "1.0 beta", "source": {"git": "x"}})
    result = validator.validate(doc)
    assert "The name of a spec should not contain whitespace." in result.errors
    assert "The version `1.0 beta` is malformed." in result.errors


@pytest.mark.parametrize("name", ["Foo/Bar", "/Foo", "Foo/"])
def test_name_with_slash_is_rejected(validator, name):
    result = validator.validate(SpecificationDocument({"name": name, "version": "1.0", "source": {"git": "x"}}))
    assert not result.valid
    assert result.errors == ["The name of a spec should not contain a slash."]


def test_empty_values_count_as_missing(validator):
    doc = SpecificationDocument(
        {"name": "", "version": "", "source": {}, "summary": "", "homepage": None, "license": "MIT", "authors": {}}
    )
    result = validator.validate(doc)
    assert result.errors == [
        "Missing required attribute `name`.",
        "Missing required attribute `version`.",
        "Missing required attribute `source`.",
    ]
    assert sorted(result.warnings) == [
        "Missing recommended attribute `authors`.",
        "Missing recommended attribute `homepage`.",
        "Missing recommended attribute `summary`.",
    ]


def test_source_must_be_a_dictionary(validator):
    result = validator.validate(SpecificationDocument({"name": "A", "version": "1.0", "source": "x.git"}))
    assert result.errors == ["The source should be a dictionary."]


def test_non_string_version_is_malformed(validator):
    result = validator.validate(SpecificationDocument({"name": "A", "version": 1.5, "source": {"git": "x"}}))
    assert result.errors == ["The version `1.5` is malformed."]


def test_pretty_json_round_trips(spec_json):
    doc = SpecificationDocument.from_json(spec_json)
    assert json.loads(doc.to_pretty_json()) == json.loads(spec_json)


async def test_document_without_remote_source_is_accessible(validator):
    assert await validator.publicly_accessible(SpecificationDocument({"source": {}})) is True


async def test_http_source_head_request():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200 if request.url.path == "/ok.zip" else 404)

    validator = SubmissionValidator(timeout=1.0, transport=httpx.MockTransport(handler))
    ok = SpecificationDocument({"source": {"http": "https://example.org/ok.zip"}})
    missing = SpecificationDocument({"source": {"http": "https://example.org/missing.zip"}})

    assert await validator.publicly_accessible(ok) is True
    assert await validator.publicly_accessible(missing) is False
    assert seen[0].method == "HEAD"


async def test_http_source_unreachable():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    validator = SubmissionValidator(timeout=1.0, transport=httpx.MockTransport(handler))
    doc = SpecificationDocument({"source": {"http": "https://example.org/slow.zip"}})
    assert await validator.publicly_accessible(doc) is False


async def test_git_source_that_does_not_exist(validator, tmp_path):
    doc = SpecificationDocument({"source": {"git": str(tmp_path / "missing.git"), "tag": "1.0"}})
    assert await validator.publicly_accessible(doc) is False
