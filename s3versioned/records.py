"""Record kinds and their codec.

A record kind is any ``pydantic.BaseModel`` subclass. Records are stored
as their JSON serialization encoded as UTF-8.
"""

import inspect
from typing import Any, Callable, Type, TypeVar, get_type_hints

from pydantic import BaseModel

from s3versioned.core.exceptions import ConstructionError

R = TypeVar("R", bound=BaseModel)

MigrationFunc = Callable[[Any], Any]


def is_record_kind(obj: Any) -> bool:
    """Check whether an object is a record kind (a pydantic model class)."""
    return inspect.isclass(obj) and issubclass(obj, BaseModel)


def kind_assignable(kind: Type[BaseModel], to: Type[BaseModel]) -> bool:
    """Check that records of ``kind`` can be used where ``to`` is expected."""
    return issubclass(kind, to)


def encode_record(record: BaseModel) -> bytes:
    """Encode a record to bytes."""
    return record.model_dump_json().encode("utf-8")


def decode_record(kind: Type[R], raw: bytes) -> R:
    """Decode bytes as a record of the given kind.

    Raises:
        pydantic.ValidationError: If the payload is not a valid ``kind``
    """
    return kind.model_validate_json(raw)


def check_migration(
    func: MigrationFunc,
    source_kind: Type[BaseModel] | None = None,
    dest_kind: Type[BaseModel] | None = None,
) -> tuple[Type[BaseModel], Type[BaseModel]]:
    """Validate the shape of a migration function.

    A migration function accepts exactly one record and returns one
    record. Kinds come from the function's annotations unless passed
    explicitly; an explicit kind wins over an annotation.

    Args:
        func: The migration function (sync or async)
        source_kind: Explicit kind of the accepted record
        dest_kind: Explicit kind of the returned record

    Returns:
        Tuple of (source kind, destination kind)

    Raises:
        ConstructionError: If the function does not have a valid shape
    """
    if not callable(func):
        raise ConstructionError(f"Migration function {func!r} is not callable")

    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError) as e:
        raise ConstructionError(f"Cannot inspect migration function {func!r}: {e}")

    params = list(signature.parameters.values())
    positional = (
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
    )
    required = [
        p for p in params
        if p.kind in positional and p.default is inspect.Parameter.empty
    ]
    required_kw = [
        p for p in params
        if p.kind == inspect.Parameter.KEYWORD_ONLY
        and p.default is inspect.Parameter.empty
    ]
    if len(required) != 1 or required_kw:
        raise ConstructionError(
            f"Migration function {_name(func)} must take exactly one argument",
            "Use a function like: def up(old: OldRecord) -> NewRecord",
        )

    try:
        hints = get_type_hints(func)
    except (NameError, TypeError):
        # Unresolvable annotations; explicit kinds may still be given
        hints = {}

    source = source_kind or hints.get(required[0].name)
    dest = dest_kind or hints.get("return")

    if not is_record_kind(source):
        raise ConstructionError(
            f"Migration function {_name(func)} must accept a record kind, got {source!r}",
            "Annotate the argument with a pydantic model or pass source_kind.",
        )
    if not is_record_kind(dest):
        raise ConstructionError(
            f"Migration function {_name(func)} must return a record kind, got {dest!r}",
            "Annotate the return type with a pydantic model or pass dest_kind.",
        )
    return source, dest


def _name(func: Any) -> str:
    return getattr(func, "__qualname__", None) or repr(func)
