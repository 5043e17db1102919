"""Client for a Confluent-compatible schema registry."""

from __future__ import annotations

import json
import threading
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any
from urllib.parse import quote, urljoin, urlsplit, urlunsplit

import requests

from avrokit.base import Schema
from avrokit.parse import parse

CONTENT_TYPE = "application/vnd.schemaregistry.v1+json"

_TIMEOUT = (15, None)


@dataclass(frozen=True)
class SchemaReference:
    """A reference from a schema to a schema registered under another subject."""

    name: str
    subject: str
    version: int


@dataclass(frozen=True)
class SchemaInfo:
    """A registered schema with its id and version."""

    schema: Schema
    id: int
    version: int


class CompatibilityLevel(str, Enum):
    """The compatibility levels a registry enforces."""

    BACKWARD = "BACKWARD"
    BACKWARD_TRANSITIVE = "BACKWARD_TRANSITIVE"
    FORWARD = "FORWARD"
    FORWARD_TRANSITIVE = "FORWARD_TRANSITIVE"
    FULL = "FULL"
    FULL_TRANSITIVE = "FULL_TRANSITIVE"
    NONE = "NONE"

    def __str__(self) -> str:
        return self.value


class RegistryError(Exception):
    """An error response returned by the registry."""

    def __init__(self, status_code: int, code: int = 0, message: str = "") -> None:
        super().__init__(status_code, code, message)
        self.status_code = status_code
        self.code = code
        self.message = message

    def __str__(self) -> str:
        if self.message:
            return self.message
        return f"registry error: {self.status_code}"


def _decode(text: str) -> Any:
    """Decode the first JSON value in ``text``, ignoring anything after it."""
    value, _ = json.JSONDecoder().raw_decode(text.lstrip())
    return value


def _validate_level(level: CompatibilityLevel | str) -> str:
    try:
        return CompatibilityLevel(level).value
    except ValueError:
        raise ValueError(f"invalid compatibility level {level}") from None


def _as_dict(value: Any) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"unexpected response: {value!r}")
    return value


def _schema_text(payload: Any) -> str:
    text = _as_dict(payload).get("schema", "")
    if not isinstance(text, str):
        raise ValueError(f"unexpected schema in response: {text!r}")
    return text


def _int_field(payload: dict[str, Any], key: str) -> int:
    value = payload.get(key, 0)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"unexpected {key} in response: {value!r}")
    return value


class Client:
    """An HTTP schema registry client."""

    def __init__(
        self,
        base_url: str,
        session: requests.Session | None = None,
        username: str = "",
        password: str = "",
    ) -> None:
        parts = urlsplit(base_url)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"invalid base url {base_url!r}")
        path = parts.path if parts.path.endswith("/") else parts.path + "/"
        self._base = urlunsplit(parts._replace(path=path))
        self.session = session if session is not None else requests.Session()
        self.username = username
        self.password = password
        self._cache: dict[int, Schema] = {}
        self._lock = threading.Lock()

    def _url(self, *segments: Any) -> str:
        relative = "/".join(quote(str(segment), safe="") for segment in segments)
        return urljoin(self._base, relative)

    def _request(self, method: str, segments: tuple[Any, ...], body: Any = None,
                 decode: bool = True) -> Any:
        kwargs: dict[str, Any] = {
            "headers": {"Content-Type": CONTENT_TYPE},
            "timeout": _TIMEOUT,
        }
        if body is not None:
            kwargs["data"] = json.dumps(body).encode("utf-8")
        if self.username or self.password:
            kwargs["auth"] = (self.username, self.password)

        try:
            response = self.session.request(method, self._url(*segments), **kwargs)
        except requests.RequestException as exc:
            raise ConnectionError(f"could not perform request: {exc}") from exc

        with response:
            text = response.content.decode("utf-8", errors="replace")
            if response.status_code >= 400:
                error = RegistryError(response.status_code)
                try:
                    payload = _decode(text)
                except ValueError:
                    payload = None
                if isinstance(payload, dict):
                    code = payload.get("error_code")
                    message = payload.get("message")
                    if isinstance(code, int) and not isinstance(code, bool):
                        error.code = code
                    if isinstance(message, str):
                        error.message = message
                raise error
            if decode:
                return _decode(text)
            return None

    def get_schema(self, schema_id: int) -> Schema:
        """Return the schema with the given id, caching it after the first fetch."""
        with self._lock:
            cached = self._cache.get(schema_id)
        if cached is not None:
            return cached

        payload = self._request("GET", ("schemas", "ids", schema_id))
        schema = parse(_schema_text(payload))
        with self._lock:
            self._cache[schema_id] = schema
        return schema

    def get_subjects(self) -> list[str]:
        """Return the registry subjects."""
        payload = self._request("GET", ("subjects",))
        if not isinstance(payload, list) or not all(isinstance(s, str) for s in payload):
            raise ValueError(f"unexpected response: {payload!r}")
        return payload

    def get_versions(self, subject: str) -> list[int]:
        """Return the schema versions of a subject."""
        payload = self._request("GET", ("subjects", subject, "versions"))
        if not isinstance(payload, list) or not all(
            isinstance(v, int) and not isinstance(v, bool) for v in payload
        ):
            raise ValueError(f"unexpected response: {payload!r}")
        return payload

    def get_schema_by_version(self, subject: str, version: int) -> Schema:
        """Return the schema of a subject at a version."""
        payload = self._request("GET", ("subjects", subject, "versions", version))
        return parse(_schema_text(payload))

    def get_latest_schema(self, subject: str) -> Schema:
        """Return the latest schema of a subject."""
        payload = self._request("GET", ("subjects", subject, "versions", "latest"))
        return parse(_schema_text(payload))

    def _schema_info(self, version: int | str, subject: str) -> SchemaInfo:
        payload = _as_dict(self._request("GET", ("subjects", subject, "versions", version)))
        schema_id = _int_field(payload, "id")
        schema_version = _int_field(payload, "version")
        return SchemaInfo(parse(_schema_text(payload)), schema_id, schema_version)

    def get_schema_info(self, subject: str, version: int) -> SchemaInfo:
        """Return the schema, id and version of a subject at a version."""
        return self._schema_info(version, subject)

    def get_latest_schema_info(self, subject: str) -> SchemaInfo:
        """Return the latest schema, id and version of a subject."""
        return self._schema_info("latest", subject)

    @staticmethod
    def _schema_payload(schema: str, references: tuple[SchemaReference, ...]) -> dict[str, Any]:
        body: dict[str, Any] = {"schema": schema}
        if references:
            body["references"] = [asdict(ref) for ref in references]
        return body

    def create_schema(self, subject: str, schema: str, *references: SchemaReference
                      ) -> tuple[int, Schema]:
        """Register a schema under a subject, returning its id and the parsed schema."""
        payload = self._request(
            "POST", ("subjects", subject, "versions"), self._schema_payload(schema, references)
        )
        schema_id = _int_field(_as_dict(payload), "id")
        return schema_id, parse(schema)

    def is_registered(self, subject: str, schema: str) -> tuple[int, Schema]:
        """Look a schema up under a subject, returning its id and the parsed schema."""
        return self.is_registered_with_refs(subject, schema)

    def is_registered_with_refs(self, subject: str, schema: str,
                                *references: SchemaReference) -> tuple[int, Schema]:
        """Look a schema with references up under a subject, returning its id and schema."""
        payload = self._request(
            "POST", ("subjects", subject), self._schema_payload(schema, references)
        )
        schema_id = _int_field(_as_dict(payload), "id")
        return schema_id, parse(schema)

    def set_global_compatibility_level(self, level: CompatibilityLevel | str) -> None:
        """Set the global compatibility level of the registry."""
        value = _validate_level(level)
        self._request("PUT", ("config",), {"compatibility": value}, decode=False)

    def set_compatibility_level(self, subject: str, level: CompatibilityLevel | str) -> None:
        """Set the compatibility level of a subject."""
        value = _validate_level(level)
        self._request("PUT", ("config", subject), {"compatibility": value}, decode=False)

    def _compatibility(self, segments: tuple[Any, ...]) -> str:
        payload = _as_dict(self._request("GET", segments))
        level = payload.get("compatibility", "")
        if not isinstance(level, str):
            raise ValueError(f"unexpected compatibility in response: {level!r}")
        return level

    def get_global_compatibility_level(self) -> str:
        """Return the global compatibility level."""
        return self._compatibility(("config",))

    def get_compatibility_level(self, subject: str) -> str:
        """Return the compatibility level of a subject."""
        return self._compatibility(("config", subject))