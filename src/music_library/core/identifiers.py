"""Reversible mapping between library-relative paths and entry identifiers.

Identifiers are URL-safe base64 of the path's UTF-8 bytes. Filenames that are
not valid UTF-8 survive through ``surrogateescape``, so every path that can be
listed from the filesystem has exactly one identifier and back.
"""

import base64
import binascii
import re

from ..exceptions import MalformedIdentifierError

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"
_ALPHABET = re.compile(r"^[A-Za-z0-9_-]+={0,2}$")


class IdentifierCodec:
    """Encode relative paths into opaque identifiers and decode them back.

    The codec never touches the filesystem; containment is checked by the
    caller once the path has been decoded.
    """

    @staticmethod
    def encode(relative_path: str) -> str:
        """Encode a relative path as returned by ``os.fsdecode``.

        Raises:
            MalformedIdentifierError: If the string holds surrogates that no
                filesystem name decodes to.
        """
        try:
            raw = relative_path.encode(_ENCODING, _ERRORS)
        except UnicodeEncodeError as e:
            raise MalformedIdentifierError(f"Path is not a filesystem name: {e}") from e
        # Escaped bytes that form valid UTF-8 would alias a real name
        if raw.decode(_ENCODING, _ERRORS) != relative_path:
            raise MalformedIdentifierError(f"Path is not a filesystem name: {relative_path!r}")
        return base64.urlsafe_b64encode(raw).decode("ascii")

    @staticmethod
    def decode(identifier: str) -> str:
        """Decode an identifier produced by ``encode``.

        Raises:
            MalformedIdentifierError: If the identifier is not canonical
                ``encode`` output.
        """
        if not isinstance(identifier, str) or not identifier:
            raise MalformedIdentifierError("Identifier must be a non-empty string")

        if len(identifier) % 4 or not _ALPHABET.match(identifier):
            raise MalformedIdentifierError(f"Identifier is not valid base64: {identifier!r}")

        try:
            raw = base64.urlsafe_b64decode(identifier)
            relative_path = raw.decode(_ENCODING, _ERRORS)
        except (binascii.Error, ValueError) as e:
            raise MalformedIdentifierError(f"Identifier cannot be decoded: {e}")

        # Non-zero trailing bits decode fine but would give the same path
        # two identifiers
        if IdentifierCodec.encode(relative_path) != identifier:
            raise MalformedIdentifierError(f"Identifier is not canonical: {identifier!r}")

        return relative_path
