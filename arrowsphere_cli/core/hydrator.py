"""
Entity hydration.

Entities are frozen dataclasses whose fields carry their wire description in
dataclass metadata. One generic pipeline (hydrate / to_dict) reads that
description, so entity kinds only declare fields:

    @dataclass(frozen=True, kw_only=True)
    class Privilege(Entity):
        name: str = scalar("name")
        description: str | None = scalar("description", required=False)

Three field categories are supported: scalars with a declared type, nested
sub-entities, and ordered collections of sub-entities.
"""

from collections.abc import Callable
from dataclasses import Field, dataclass, field, fields
from functools import cache
from typing import Any, ClassVar, TypeVar

from arrowsphere_cli.core.errors import EntityValidationException

E = TypeVar("E", bound="Entity")

# Metadata keys
KEY = "wire_key"
CATEGORY = "category"
REQUIRED = "required"
TYPE = "type"
NULLABLE = "nullable"
KIND = "kind"
ITEMS = "items"

SCALAR = "scalar"
NESTED = "nested"
COLLECTION = "collection"


def scalar(
    key: str,
    type_: type | tuple[type, ...] = str,
    *,
    required: bool = True,
    nullable: bool = False,
    default: Any = None,
    items: type | None = None,
) -> Any:
    """
    Declare a scalar field read from ``key``.

    ``items`` is the element type when ``type_`` admits a list.
    """
    metadata = {KEY: key, CATEGORY: SCALAR, REQUIRED: required, TYPE: type_, NULLABLE: nullable, ITEMS: items}
    if required:
        return field(metadata=metadata)
    return field(default=default, metadata=metadata)


def nested(key: str, kind: "type[Entity]", *, required: bool = False) -> Any:
    """Declare a sub-entity field. Absent keys hydrate to an empty sub-entity."""
    metadata = {KEY: key, CATEGORY: NESTED, REQUIRED: required, KIND: kind}
    return field(default_factory=_empty_factory(kind), metadata=metadata)


def collection(key: str, kind: "type[Entity]", *, required: bool = False) -> Any:
    """Declare an ordered collection of sub-entities, stored as a tuple."""
    metadata = {KEY: key, CATEGORY: COLLECTION, REQUIRED: required, KIND: kind}
    return field(default_factory=tuple, metadata=metadata)


def _empty_factory(kind: "type[Entity]") -> Callable[[], "Entity"]:
    return lambda: hydrate(kind, {})


@dataclass(frozen=True, kw_only=True)
class Entity:
    """
    Base class for every typed value built from API JSON.

    ``present_keys`` records which wire keys were present when the entity was
    hydrated; to_dict() uses it to reproduce optional keys exactly. Entities
    constructed directly leave it as None and serialize every optional field
    that holds a value.
    """

    STRICT: ClassVar[bool] = False

    present_keys: frozenset[str] | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        """
        Validate field values against their declaration.

        Raises:
            EntityValidationException: If a required field is None, a scalar
                has the wrong type, or a sub-entity is not of the declared kind

        """
        name = type(self).__name__
        for f in wire_fields(type(self)):
            value = getattr(self, f.name)
            checked = _check(f, value, name)
            if checked is not value:
                # Lists given to the constructor are stored as tuples
                object.__setattr__(self, f.name, checked)

    @classmethod
    def from_dict(cls: type[E], data: Any) -> E:
        """Create from API response dict."""
        return hydrate(cls, data)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict using wire key names."""
        result: dict[str, Any] = {}
        for f in wire_fields(type(self)):
            key = f.metadata[KEY]
            value = getattr(self, f.name)
            if not f.metadata[REQUIRED]:
                if self.present_keys is not None:
                    if key not in self.present_keys:
                        continue
                elif _is_unset(f, value):
                    continue
            result[key] = _serialize(f, value)
        return result


@cache
def wire_fields(kind: type[Entity]) -> tuple[Field, ...]:
    """Dataclass fields of ``kind`` that map to a wire key, in declaration order."""
    return tuple(f for f in fields(kind) if KEY in f.metadata)


def hydrate(kind: type[E], data: Any) -> E:
    """
    Build a ``kind`` entity from a decoded JSON object.

    Raises:
        EntityValidationException: If ``data`` is not an object, a required
            field is missing, or a field has the wrong type

    """
    name = kind.__name__
    # The API encodes an empty map as an empty JSON array.
    if isinstance(data, list) and not data:
        data = {}
    if not isinstance(data, dict):
        raise EntityValidationException(
            f"{name} expects a JSON object, got {type(data).__name__}",
            entity=name,
        )

    declared = wire_fields(kind)
    known = {f.metadata[KEY] for f in declared}
    if kind.STRICT:
        unknown = [key for key in data if key not in known]
        if unknown:
            raise EntityValidationException(
                f"Unknown {name} field: {unknown[0]}",
                entity=name,
                field=unknown[0],
            )

    values: dict[str, Any] = {}
    for f in declared:
        key = f.metadata[KEY]
        if key not in data:
            if f.metadata[REQUIRED]:
                raise EntityValidationException(
                    f"Missing required field '{key}' in {name}",
                    entity=name,
                    field=key,
                )
            continue
        values[f.name] = _convert(f, data[key], name)

    return kind(present_keys=frozenset(key for key in data if key in known), **values)


def hydrate_list(kind: type[E], items: Any) -> list[E]:
    """Hydrate every object of a JSON array, preserving order."""
    if not isinstance(items, list):
        raise EntityValidationException(
            f"{kind.__name__} list expects a JSON array, got {type(items).__name__}",
            entity=kind.__name__,
        )
    return [hydrate(kind, item) for item in items]


def _convert(f: Field, value: Any, entity: str) -> Any:
    key = f.metadata[KEY]
    category = f.metadata[CATEGORY]

    if category == NESTED:
        return hydrate(f.metadata[KIND], value)

    if category == COLLECTION:
        if not isinstance(value, list):
            raise EntityValidationException(
                f"Field '{key}' of {entity} must be an array, got {type(value).__name__}",
                entity=entity,
                field=key,
            )
        return tuple(hydrate(f.metadata[KIND], item) for item in value)

    if value is None:
        if f.metadata[NULLABLE]:
            return None
        raise EntityValidationException(
            f"Field '{key}' of {entity} must not be null",
            entity=entity,
            field=key,
        )
    return _check_scalar(f, value, entity)


def _check(f: Field, value: Any, entity: str) -> Any:
    """Validate an already-built field value; returns it, with lists as tuples."""
    key = f.metadata[KEY]
    category = f.metadata[CATEGORY]

    if category == NESTED:
        kind = f.metadata[KIND]
        if not isinstance(value, kind):
            raise EntityValidationException(
                f"Field '{key}' of {entity} must be a {kind.__name__}, got {type(value).__name__}",
                entity=entity,
                field=key,
            )
        return value

    if category == COLLECTION:
        kind = f.metadata[KIND]
        if not isinstance(value, (list, tuple)) or not all(isinstance(item, kind) for item in value):
            raise EntityValidationException(
                f"Field '{key}' of {entity} must be a sequence of {kind.__name__}",
                entity=entity,
                field=key,
            )
        return value if isinstance(value, tuple) else tuple(value)

    if value is None:
        if f.metadata[NULLABLE] or not f.metadata[REQUIRED]:
            return None
        raise EntityValidationException(
            f"Field '{key}' of {entity} must not be null",
            entity=entity,
            field=key,
        )
    return _check_scalar(f, value, entity)


def _check_scalar(f: Field, value: Any, entity: str) -> Any:
    key = f.metadata[KEY]
    expected = f.metadata[TYPE]
    if isinstance(value, (list, tuple)):
        types = expected if isinstance(expected, tuple) else (expected,)
        items = f.metadata[ITEMS]
        valid = list in types and (items is None or all(_matches(item, items) for item in value))
    else:
        valid = _matches(value, expected)
    if not valid:
        raise EntityValidationException(
            f"Field '{key}' of {entity} has invalid value {value!r}",
            entity=entity,
            field=key,
        )
    return value if not isinstance(value, list) else tuple(value)


def _matches(value: Any, expected: type | tuple[type, ...]) -> bool:
    types = expected if isinstance(expected, tuple) else (expected,)
    # bool is a subclass of int but never a valid number on the wire
    if isinstance(value, bool):
        return bool in types
    if float in types and isinstance(value, int):
        return True
    return isinstance(value, types)


def _is_unset(f: Field, value: Any) -> bool:
    category = f.metadata[CATEGORY]
    if category == NESTED:
        return not value.to_dict()
    if category == COLLECTION:
        return not value
    return value is None


def _serialize(f: Field, value: Any) -> Any:
    category = f.metadata[CATEGORY]
    if category == NESTED:
        return value.to_dict()
    if category == COLLECTION:
        return [item.to_dict() for item in value]
    if isinstance(value, tuple):
        return list(value)
    return value
