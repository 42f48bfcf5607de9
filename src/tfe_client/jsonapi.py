"""JSON:API encoding and decoding.

Provides the base models every resource and options type derives from, plus
the functions that turn options into request bodies and query strings and
turn response documents back into models.

Resource models map the JSON:API envelope onto pydantic fields:

- ``jsonapi_type`` (class variable) is the resource ``type``
- ``id`` is the primary identifier
- fields declared with :func:`relation` are ``relationships``
- every other field is an attribute; wire names are dasherized field names

Options models use the same mapping for request bodies. Only the fields the
caller actually set are sent, so an omitted optional field never reaches the
wire while an explicit ``None`` is sent as ``null``.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import (
    Any,
    ClassVar,
    Dict,
    FrozenSet,
    Generic,
    Iterable,
    List,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
    Union,
    get_args,
)

import httpx
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from .exceptions import (
    APIError,
    ConflictError,
    DecodeError,
    ForbiddenError,
    InvalidRequestBodyError,
    InvalidPaginationError,
    InvalidRequestError,
    RateLimitError,
    ResourceNotFoundError,
    ServerError,
    UnauthorizedError,
    UnresolvedRelationshipError,
    lookup_error_detail,
)

logger = logging.getLogger(__name__)

CONTENT_TYPE_JSONAPI = "application/vnd.api+json"
CONTENT_TYPE_JSON = "application/json"

INCLUDE_QUERY_PARAM = "include"

_RELATION_MARKER = "relation"

R = TypeVar("R", bound="Resource")


def dasherize(name: str) -> str:
    """Convert a snake_case field name to its dashed wire name."""
    return name.replace("_", "-")


def relation(alias: Optional[str] = None, description: str = "") -> Any:
    """Declare a model field as a JSON:API relationship."""
    kwargs: Dict[str, Any] = {"description": description}
    if alias is not None:
        kwargs["alias"] = alias
    return Field(default=None, json_schema_extra={"jsonapi": _RELATION_MARKER}, **kwargs)


def _accepts_none(annotation: Any) -> bool:
    return annotation is Any or annotation is None or type(None) in get_args(annotation)


def _drop_disallowed_nulls(model_cls: Type[BaseModel], data: Any) -> Any:
    """Remove JSON nulls for fields that cannot hold None so their defaults apply."""
    if not isinstance(data, dict):
        return data
    rejected = set()
    for name, info in model_cls.model_fields.items():
        if not _accepts_none(info.annotation):
            rejected.add(name)
            rejected.add(info.alias or dasherize(name))
    return {k: v for k, v in data.items() if not (v is None and k in rejected)}


def _relation_fields(model_cls: Type[BaseModel]) -> Dict[str, str]:
    """Map relation field names to their wire names."""
    fields = {}
    for name, info in model_cls.model_fields.items():
        extra = info.json_schema_extra
        if isinstance(extra, dict) and extra.get("jsonapi") == _RELATION_MARKER:
            fields[name] = info.alias or dasherize(name)
    return fields


class Attributes(BaseModel):
    """Nested attribute object using dashed keys, e.g. ``vcs-repo``."""

    model_config = ConfigDict(alias_generator=dasherize, populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def nulls_to_defaults(cls, data: Any) -> Any:
        return _drop_disallowed_nulls(cls, data)


_RESOURCE_TYPES: Dict[str, Type["Resource"]] = {}


class Resource(BaseModel):
    """Base class for models decoded from JSON:API documents."""

    model_config = ConfigDict(alias_generator=dasherize, populate_by_name=True, extra="ignore")

    jsonapi_type: ClassVar[str] = ""

    id: str = ""

    @model_validator(mode="before")
    @classmethod
    def nulls_to_defaults(cls, data: Any) -> Any:
        return _drop_disallowed_nulls(cls, data)

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        if cls.jsonapi_type:
            _RESOURCE_TYPES.setdefault(cls.jsonapi_type, cls)


class ResourceReference(Resource):
    """Stand-in for a related resource whose type has no dedicated model."""

    type: str = ""


def resource_class_for(jsonapi_type: str) -> Type[Resource]:
    return _RESOURCE_TYPES.get(jsonapi_type, ResourceReference)


class Options(BaseModel):
    """Base class for create/update payloads encoded as JSON:API documents."""

    model_config = ConfigDict(alias_generator=dasherize, populate_by_name=True, extra="forbid")

    jsonapi_type: ClassVar[str] = ""

    def valid(self) -> None:
        """Raise a validation error when the options cannot be sent."""


class QueryOptions(BaseModel):
    """Base class for options encoded into the URL query string."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    def valid(self) -> None:
        """Raise a validation error when the options cannot be sent."""


class ListOptions(QueryOptions):
    """Pagination options shared by every list operation."""

    page_number: Optional[int] = Field(None, alias="page[number]", description="Page to request")
    page_size: Optional[int] = Field(None, alias="page[size]", description="Elements per page")

    def valid(self) -> None:
        for value in (self.page_number, self.page_size):
            if value is not None and value < 1:
                raise InvalidPaginationError()


class Pagination(BaseModel):
    """Pagination details returned with every list response."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    current_page: int = Field(0, alias="current-page")
    previous_page: Optional[int] = Field(None, alias="prev-page")
    next_page: Optional[int] = Field(None, alias="next-page")
    total_pages: Optional[int] = Field(None, alias="total-pages")
    total_count: Optional[int] = Field(None, alias="total-count")


@dataclass
class ResourceList(Generic[R]):
    """One page of a list operation."""

    items: List[R] = field(default_factory=list)
    pagination: Optional[Pagination] = None

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


# ---------------------------------------------------------------------------
# Request encoding
# ---------------------------------------------------------------------------


def _resource_identifier(value: Any) -> Dict[str, str]:
    if not isinstance(value, Resource):
        raise InvalidRequestBodyError(
            f"relationship value must be a resource model, got {type(value).__name__}"
        )
    jsonapi_type = value.type if isinstance(value, ResourceReference) else value.jsonapi_type
    return {"type": jsonapi_type, "id": value.id}


def _encode_node(options: Options) -> Dict[str, Any]:
    relations = _relation_fields(type(options))
    attributes = options.model_dump(
        mode="json",
        by_alias=True,
        exclude_unset=True,
        exclude=set(relations),
    )

    relationships: Dict[str, Any] = {}
    for name, wire_name in relations.items():
        if name not in options.model_fields_set:
            continue
        value = getattr(options, name)
        if value is None:
            relationships[wire_name] = {"data": None}
        elif isinstance(value, (list, tuple)):
            relationships[wire_name] = {"data": [_resource_identifier(v) for v in value]}
        else:
            relationships[wire_name] = {"data": _resource_identifier(value)}

    node: Dict[str, Any] = {"type": options.jsonapi_type}
    if attributes:
        node["attributes"] = attributes
    if relationships:
        node["relationships"] = relationships
    return node


def encode_body(body: Any) -> bytes:
    """Serialize a request body.

    Options models (or a list of them) become JSON:API documents; plain
    dictionaries are sent as regular JSON.
    """
    if isinstance(body, Options):
        document: Any = {"data": _encode_node(body)}
    elif isinstance(body, (list, tuple)) and all(isinstance(b, Options) for b in body):
        document = {"data": [_encode_node(b) for b in body]}
    elif isinstance(body, dict):
        document = body
    else:
        raise InvalidRequestBodyError()
    return json.dumps(document).encode("utf-8")


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _is_joined_key(key: str) -> bool:
    return key == INCLUDE_QUERY_PARAM or "filter[" in key


def encode_query(options: Optional[QueryOptions]) -> List[Tuple[str, str]]:
    """Encode query options into sorted key/value pairs.

    Values for ``include`` and ``filter[...]`` keys are joined with commas;
    other list values repeat the key.
    """
    if options is None:
        return []
    raw = options.model_dump(mode="json", by_alias=True, exclude_none=True)

    pairs: List[Tuple[str, str]] = []
    for key in sorted(raw):
        value = raw[key]
        if isinstance(value, (list, tuple)):
            if not value:
                continue
            values = [_query_value(v) for v in value]
            if _is_joined_key(key):
                pairs.append((key, ",".join(values)))
            else:
                pairs.extend((key, v) for v in values)
        elif isinstance(value, dict):
            raise InvalidRequestBodyError(f"query option {key!r} cannot be a mapping")
        else:
            pairs.append((key, _query_value(value)))
    return pairs


def requested_includes(options: Optional[QueryOptions]) -> FrozenSet[str]:
    """Return the top-level relationship names requested via ``include``."""
    for key, value in encode_query(options):
        if key == INCLUDE_QUERY_PARAM:
            return frozenset(
                dasherize(part.split(".", 1)[0]) for part in value.split(",") if part
            )
    return frozenset()


# ---------------------------------------------------------------------------
# Response decoding
# ---------------------------------------------------------------------------


def load_document(body: Union[bytes, str, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(body, dict):
        return body
    try:
        document = json.loads(body)
    except ValueError as e:
        raise DecodeError(f"invalid JSON in response body: {e}") from e
    if not isinstance(document, dict):
        raise DecodeError("response body must be a JSON object")
    return document


class _DocumentDecoder:
    """Builds models from one response document."""

    def __init__(self, document: Dict[str, Any], include: Iterable[str] = ()):
        self.required = frozenset(include)
        self.included: Dict[Tuple[str, str], Dict[str, Any]] = {}
        for node in document.get("included") or []:
            if isinstance(node, dict) and "type" in node and "id" in node:
                self.included[(str(node["type"]), str(node["id"]))] = node

    def build(
        self,
        node: Any,
        model_cls: Type[R],
        path: FrozenSet[Tuple[str, str]] = frozenset(),
    ) -> R:
        if not isinstance(node, dict):
            raise DecodeError(f"expected resource object, got {type(node).__name__}")

        data = dict(node.get("attributes") or {})
        data["id"] = str(node.get("id") or "")
        if issubclass(model_cls, ResourceReference):
            data["type"] = str(node.get("type") or "")
        if "links" in model_cls.model_fields and isinstance(node.get("links"), dict):
            data["links"] = node["links"]
        try:
            instance = model_cls.model_validate(data)
        except PydanticValidationError as e:
            raise DecodeError(f"unable to decode {model_cls.__name__}: {e}") from e

        path = path | {(str(node.get("type") or ""), data["id"])}
        relationships = node.get("relationships") or {}
        for name, wire_name in _relation_fields(model_cls).items():
            rel = relationships.get(wire_name)
            if not isinstance(rel, dict) or rel.get("data") is None:
                continue
            ref = rel["data"]
            if isinstance(ref, list):
                value: Any = [self.resolve(r, wire_name, path) for r in ref]
            else:
                value = self.resolve(ref, wire_name, path)
            setattr(instance, name, value)
        return instance

    def resolve(self, ref: Any, wire_name: str, path: FrozenSet[Tuple[str, str]]) -> Resource:
        if not isinstance(ref, dict) or "type" not in ref or "id" not in ref:
            raise DecodeError(f"malformed relationship {wire_name!r}")
        key = (str(ref["type"]), str(ref["id"]))
        target_cls = resource_class_for(key[0])

        node = self.included.get(key)
        if node is None:
            if wire_name in self.required:
                raise UnresolvedRelationshipError(
                    f"included relationship {wire_name!r} ({key[0]} {key[1]}) missing from response"
                )
            return _stub(target_cls, key)
        if key in path:
            # Back-reference to a resource already being built on this path.
            return _stub(target_cls, key)
        return self.build(node, target_cls, path)


def _stub(model_cls: Type[Resource], key: Tuple[str, str]) -> Resource:
    if issubclass(model_cls, ResourceReference):
        return model_cls.model_construct(id=key[1], type=key[0])
    return model_cls.model_construct(id=key[1])


def decode_one(
    body: Union[bytes, str, Dict[str, Any]],
    model_cls: Type[R],
    include: Iterable[str] = (),
) -> R:
    """Decode a single-resource document into ``model_cls``."""
    document = load_document(body)
    data = document.get("data")
    if not isinstance(data, dict):
        raise DecodeError(f"expected a single resource in 'data' for {model_cls.__name__}")
    return _DocumentDecoder(document, include).build(data, model_cls)


def decode_many(
    body: Union[bytes, str, Dict[str, Any]],
    model_cls: Type[R],
    include: Iterable[str] = (),
) -> List[R]:
    """Decode a collection document, one fresh instance per element."""
    document = load_document(body)
    data = document.get("data")
    if not isinstance(data, list):
        raise DecodeError(f"expected a list of resources in 'data' for {model_cls.__name__}")
    decoder = _DocumentDecoder(document, include)
    return [decoder.build(node, model_cls) for node in data]


def parse_pagination(body: Union[bytes, str, Dict[str, Any]]) -> Optional[Pagination]:
    """Return the pagination envelope, or None when the document has none."""
    document = load_document(body)
    meta = document.get("meta")
    if not isinstance(meta, dict):
        return None
    raw = meta.get("pagination")
    if not isinstance(raw, dict):
        return None
    try:
        return Pagination.model_validate(raw)
    except PydanticValidationError as e:
        raise DecodeError(f"unable to decode pagination: {e}") from e


def decode_list(
    body: Union[bytes, str, Dict[str, Any]],
    model_cls: Type[R],
    include: Iterable[str] = (),
) -> ResourceList[R]:
    document = load_document(body)
    return ResourceList(
        items=decode_many(document, model_cls, include),
        pagination=parse_pagination(document),
    )


# ---------------------------------------------------------------------------
# Status checking
# ---------------------------------------------------------------------------


def decode_error_payload(response: httpx.Response) -> List[str]:
    """Format the entries of a JSON:API ``errors`` array."""
    try:
        document = response.json()
    except ValueError:
        return []
    errors = document.get("errors") if isinstance(document, dict) else None
    if not isinstance(errors, list):
        return []

    messages = []
    for entry in errors:
        if isinstance(entry, str):
            messages.append(entry)
            continue
        if not isinstance(entry, dict):
            continue
        title = str(entry.get("title") or "")
        detail = str(entry.get("detail") or "")
        messages.append(f"{title}\n\n{detail}" if detail else title)
    return [m for m in messages if m]


def _retry_after(response: httpx.Response) -> Optional[float]:
    for header in ("Retry-After", "X-RateLimit-Reset"):
        value = response.headers.get(header)
        if value:
            try:
                return float(value)
            except ValueError:
                logger.debug(f"Ignoring non-numeric {header} header: {value!r}")
    return None


def check_response(response: httpx.Response) -> None:
    """Raise the sentinel matching a non-success response."""
    status = response.status_code
    if 200 <= status < 400:
        return

    messages = decode_error_payload(response)
    body = response.text
    text = "\n".join(messages) if messages else f"{status} {response.reason_phrase}".strip()
    context: Dict[str, Any] = {"status_code": status, "messages": messages, "body": body}

    if status == 401:
        raise UnauthorizedError(**context)
    if status == 403:
        raise ForbiddenError(**context)
    if status == 404:
        raise ResourceNotFoundError(**context)

    specific = lookup_error_detail(status, messages)
    if specific is not None:
        raise specific(**context)

    if status in (400, 422):
        raise InvalidRequestError(text, **context)
    if status == 409:
        raise ConflictError(text, **context)
    if status == 429:
        raise RateLimitError(text, retry_after=_retry_after(response), **context)
    if status >= 500:
        raise ServerError(text, **context)
    raise APIError(text, **context)


def include_values(values: Optional[Sequence[Any]]) -> Optional[List[str]]:
    """Normalize include options given as enums or strings."""
    if values is None:
        return None
    return [getattr(v, "value", v) for v in values]
