"""Response body decoders."""

from functools import lru_cache
from typing import Any, Protocol, TypeVar, runtime_checkable

from pydantic import TypeAdapter


T = TypeVar("T")


@runtime_checkable
class ByteDecoder(Protocol):
    """Protocol for decoding response bytes into a target type.

    Decoders must be safe to call concurrently. Any exception they raise is
    reported to the caller as a decoding error.
    """

    def decode(self, payload: bytes, target: type[T]) -> T:
        """Decode a payload.

        Args:
            payload: Raw response bytes.
            target: Type to decode into.

        Returns:
            The decoded value.
        """
        ...


@lru_cache(maxsize=256)
def _adapter_for(target: Any) -> TypeAdapter[Any]:
    return TypeAdapter(target)


class JsonDecoder:
    """Decode JSON bodies with pydantic validation.

    Runs in lax mode, so ISO-8601 strings and Unix timestamps decode into
    datetimes and numeric strings into numbers. Any type pydantic can
    validate is a valid target: models, dataclasses, TypedDicts, builtins.
    """

    def __init__(self, strict: bool = False) -> None:
        """Initialize the decoder.

        Args:
            strict: Disable pydantic's lax type coercion.
        """
        self._strict = strict

    def decode(self, payload: bytes, target: type[T]) -> T:
        """Decode a JSON payload into ``target``.

        Args:
            payload: Raw JSON bytes.
            target: Type to validate into.

        Returns:
            The validated value.

        Raises:
            pydantic.ValidationError: If the payload is not valid JSON or
                does not match ``target``.
        """
        try:
            adapter: TypeAdapter[T] = _adapter_for(target)
        except TypeError:
            # unhashable target types bypass the adapter cache
            adapter = TypeAdapter(target)
        return adapter.validate_json(payload, strict=self._strict)


class RawDecoder:
    """Pass payload bytes through undecoded (target must be ``bytes``)."""

    def decode(self, payload: bytes, target: type[T]) -> T:
        """Return the payload unchanged.

        Raises:
            TypeError: If ``target`` is not ``bytes``.
        """
        if target is not bytes:
            msg = f"RawDecoder only decodes to bytes, not {target!r}"
            raise TypeError(msg)
        return payload  # type: ignore[return-value]
