"""Helpers shared by the stores: constraint violations and whitelisted patches."""

from collections.abc import Collection, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cacophony.core.errors import ConflictError, ValidationError


@contextmanager
def unique_or_conflict(db: Session, message: str) -> Iterator[None]:
    """
    Flush pending writes and turn a constraint violation into ConflictError.

    Referenced rows are checked before writing, so an IntegrityError here is a
    lost race on a unique value. The enclosing atomic() block rolls back.
    """
    try:
        yield
        db.flush()
    except IntegrityError as e:
        raise ConflictError(message) from e


def patch_values(
    patch: BaseModel,
    columns: Mapping[str, str],
    nullable: Collection[str] = (),
) -> dict[str, Any]:
    """
    Fields explicitly set on the patch, keyed by column name.

    Only fields listed in `columns` can reach storage; anything else on the
    patch is ignored. An explicit null clears a field named in `nullable`
    and is dropped for any other. Raises ValidationError when nothing is
    left to update.
    """
    provided = patch.model_dump(exclude_unset=True)
    values = {
        columns[field]: value
        for field, value in provided.items()
        if field in columns and (value is not None or field in nullable)
    }
    if not values:
        raise ValidationError("no valid data passed")
    return values


def apply_values(row: object, values: Mapping[str, Any]) -> None:
    for column, value in values.items():
        setattr(row, column, value)
