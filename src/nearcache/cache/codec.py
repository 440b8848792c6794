"""Entry codec -- cache records to and from the durable store's string format.

Records are stored as JSON using the wire keys ``data``, ``timestamp``,
``expiresAt`` and, for location-tagged records, ``coordinates``. Decoding
validates the payload against the namespace's Pydantic model, so a record
written under an older payload shape fails loudly here instead of being
misread by a screen.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import ValidationError

from nearcache.exceptions import CodecError
from nearcache.models import CacheRecord
from nearcache.namespaces import CacheNamespace

RecordT = TypeVar("RecordT", bound=CacheRecord)


class EntryCodec(Generic[RecordT]):
    """Reversible mapping between one record class and a JSON string.

    Args:
        record_type: A concrete, parametrised record class such as
            ``CacheRecord[UserProfile]``.

    Example::

        codec = EntryCodec.for_namespace(CacheNamespace.USER_PROFILE)
        text = codec.encode(record)
        assert codec.decode(text) == record
    """

    def __init__(self, record_type: type[RecordT]) -> None:
        self._record_type = record_type

    @classmethod
    def for_namespace(cls, namespace: CacheNamespace) -> EntryCodec:
        """Build the codec for *namespace*'s record class."""
        return cls(namespace.record_type)

    @property
    def record_type(self) -> type[RecordT]:
        return self._record_type

    def encode(self, record: RecordT) -> str:
        """Serialise *record* to its wire JSON."""
        return record.model_dump_json(by_alias=True)

    def decode(self, text: str) -> RecordT:
        """Parse and validate a stored string.

        Raises:
            CodecError: If *text* is not JSON or does not match the record
                shape (including the payload model).
        """
        try:
            return self._record_type.model_validate_json(text)
        except ValidationError as exc:
            raise CodecError(
                f"Cannot decode {self._record_type.__name__}: "
                f"{exc.error_count()} validation error(s)"
            ) from exc
