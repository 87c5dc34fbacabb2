"""Structural validation of submitted podspec documents.

This gates job creation; the pipeline itself never calls it. The rules are
JSON Schemas: violations of ``REQUIRED_SCHEMA`` are errors, violations of
``RECOMMENDED_SCHEMA`` are warnings. A subschema may carry a ``messages``
mapping from keyword to the text reported when that keyword fails.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

import httpx
from jsonschema import Draft202012Validator

from podtrunk.config import settings

logger = logging.getLogger(__name__)

_PREFIX = re.compile(r"^\[.+?\]\s*")


def _recommended(attr: str) -> dict[str, Any]:
    return {
        "not": {"enum": [None, "", [], {}]},
        "messages": {"not": f"[attributes] Missing recommended attribute `{attr}`."},
    }


REQUIRED_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["name", "version", "source"],
    "messages": {"required": "[attributes] Missing required attribute `{property}`."},
    "properties": {
        "name": {
            "type": "string",
            "minLength": 1,
            "allOf": [
                {
                    "not": {"pattern": r"\s"},
                    "messages": {"not": "[name] The name of a spec should not contain whitespace."},
                },
                {
                    "not": {"pattern": "/"},
                    "messages": {"not": "[name] The name of a spec should not contain a slash."},
                },
            ],
            "messages": {
                "type": "[name] The name of a spec should be a string.",
                "minLength": "[attributes] Missing required attribute `name`.",
            },
        },
        "version": {
            "type": "string",
            "minLength": 1,
            "pattern": r"^(?:[0-9A-Za-z][0-9A-Za-z.+-]*)?$",
            "messages": {
                "type": "[version] The version `{instance}` is malformed.",
                "minLength": "[attributes] Missing required attribute `version`.",
                "pattern": "[version] The version `{instance}` is malformed.",
            },
        },
        "source": {
            "type": "object",
            "minProperties": 1,
            "if": {"minProperties": 1},
            "then": {
                "anyOf": [{"required": ["git"]}, {"required": ["http"]}],
                "messages": {"anyOf": "[source] The source should specify a `git` or `http` location."},
            },
            "messages": {
                "type": "[source] The source should be a dictionary.",
                "minProperties": "[attributes] Missing required attribute `source`.",
            },
        },
    },
}

RECOMMENDED_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["summary", "homepage", "license", "authors"],
    "messages": {"required": "[attributes] Missing recommended attribute `{property}`."},
    "properties": {attr: _recommended(attr) for attr in ("summary", "homepage", "license", "authors")},
}


class SpecificationDocument:
    """A parsed podspec JSON document."""

    def __init__(self, data: dict[str, Any]):
        self.data = data

    @classmethod
    def from_json(cls, raw: str | bytes) -> SpecificationDocument | None:
        """Parse ``raw``; returns None unless it is a JSON object."""
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            return None
        if not isinstance(data, dict):
            return None
        return cls(data)

    @property
    def name(self) -> str | None:
        value = self.data.get("name")
        return str(value) if value is not None else None

    @property
    def version(self) -> str | None:
        value = self.data.get("version")
        return str(value) if value is not None else None

    @property
    def source(self) -> dict[str, Any]:
        source = self.data.get("source")
        return source if isinstance(source, dict) else {}

    def to_json(self) -> str:
        return json.dumps(self.data, sort_keys=True)

    def to_pretty_json(self) -> str:
        return json.dumps(self.data, indent=2, sort_keys=True) + "\n"


@dataclass
class ValidationResult:
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def as_details(self) -> dict[str, list[str]]:
        details = {}
        if self.warnings:
            details["warnings"] = self.warnings
        if self.errors:
            details["errors"] = self.errors
        return details


class SubmissionValidator:
    """Checks a document is complete enough to be pushed."""

    def __init__(self, timeout: float | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.timeout = timeout if timeout is not None else settings.validation_timeout_seconds
        self._transport = transport
        self._required = Draft202012Validator(REQUIRED_SCHEMA)
        self._recommended = Draft202012Validator(RECOMMENDED_SCHEMA)

    def validate(self, doc: SpecificationDocument) -> ValidationResult:
        return ValidationResult(
            warnings=_remove_prefixes(_messages(self._recommended, doc.data)),
            errors=_remove_prefixes(_messages(self._required, doc.data)),
        )

    async def publicly_accessible(self, doc: SpecificationDocument) -> bool:
        """Whether the document's source can be reached from outside."""
        if doc.source.get("http"):
            return await self._validate_http(doc.source["http"])
        if doc.source.get("git"):
            ref = (
                doc.source.get("tag")
                or doc.source.get("commit")
                or doc.source.get("branch")
                or "HEAD"
            )
            return await self._validate_git(doc.source["git"], str(ref))
        return True

    async def _validate_http(self, url: str) -> bool:
        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=self.timeout, follow_redirects=True
            ) as client:
                response = await client.head(url)
        except httpx.HTTPError as exc:
            logger.info("Source URL %s is not reachable: %s", url, exc)
            return False
        return response.is_success

    async def _validate_git(self, url: str, ref: str) -> bool:
        try:
            proc = await asyncio.create_subprocess_exec(
                "git", "ls-remote", url, ref,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as exc:
            logger.warning("Unable to run git ls-remote: %s", exc)
            return False

        try:
            returncode = await asyncio.wait_for(proc.wait(), timeout=self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            logger.info("git ls-remote %s %s timed out", url, ref)
            return False
        return returncode == 0


def _remove_prefixes(messages: list[str]) -> list[str]:
    return [_PREFIX.sub("", message) for message in messages]


def _messages(validator: Draft202012Validator, data: dict[str, Any]) -> list[str]:
    # dict keys keep order and drop repeats from per-property required errors
    return list(dict.fromkeys(_iter_messages(validator, data)))


def _iter_messages(validator: Draft202012Validator, data: dict[str, Any]) -> Iterator[str]:
    for error in validator.iter_errors(data):
        template = error.schema.get("messages", {}).get(error.validator) if isinstance(error.schema, dict) else None
        if template is None:
            yield error.message
        elif error.validator == "required":
            for prop in error.validator_value:
                if prop not in error.instance:
                    yield template.format(property=prop)
        else:
            yield template.format(instance=error.instance)
