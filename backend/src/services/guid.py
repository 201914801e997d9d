"""
GUID service for entity identification.

Provides utilities for encoding, decoding and validating the Global Unique
Identifiers used in URLs and API payloads.

GUID Format: {prefix}_{base32_uuid}
- prefix: 3-character entity type identifier (usr, grp, evt, ...)
- base32_uuid: 26-character Crockford Base32 encoded UUIDv7
"""

import re
import uuid
from typing import Optional

import base32_crockford
from uuid_extensions import uuid7

ENTITY_PREFIXES = {
    "usr": "User",
    "grp": "Group",
    "mem": "GroupMembership",
    "evt": "Event",
    "asg": "EventAssignment",
    "avr": "AvailabilityRequest",
    "avs": "AvailabilityResponse",
}

# Crockford Base32 alphabet (excludes I, L, O, U to avoid confusion)
CROCKFORD_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"

GUID_PATTERN = re.compile(
    r"^(" + "|".join(ENTITY_PREFIXES) + r")_[0-9A-HJKMNP-TV-Za-hjkmnp-tv-z]{26}$",
    re.IGNORECASE
)


class GuidService:
    """
    Static helpers for GUID operations.

    Services use these to turn a caller-supplied GUID into the UUID column
    value before querying, without trusting the string's shape.
    """

    @staticmethod
    def generate_uuid() -> uuid.UUID:
        """Generate a new UUIDv7 value (time-ordered)."""
        return uuid7()

    @staticmethod
    def encode_uuid(uuid_value: uuid.UUID, prefix: str) -> str:
        """
        Encode a UUID to a GUID string.

        Args:
            uuid_value: UUID to encode
            prefix: Entity type prefix (usr, grp, evt, ...)

        Returns:
            GUID string (e.g., "grp_01hgw2bbg...")

        Raises:
            ValueError: If prefix is invalid
        """
        if prefix not in ENTITY_PREFIXES:
            raise ValueError(
                f"Invalid prefix '{prefix}'. "
                f"Valid prefixes: {', '.join(ENTITY_PREFIXES.keys())}"
            )

        if isinstance(uuid_value, bytes):
            uuid_int = int.from_bytes(uuid_value, "big")
        else:
            uuid_int = int.from_bytes(uuid_value.bytes, "big")

        encoded = base32_crockford.encode(uuid_int).zfill(26)
        return f"{prefix}_{encoded.lower()}"

    @staticmethod
    def validate_guid(guid: Optional[str], expected_prefix: Optional[str] = None) -> bool:
        """
        Validate a GUID format.

        Args:
            guid: GUID string to validate
            expected_prefix: Optional expected prefix for type checking

        Returns:
            True if valid, False otherwise
        """
        if not guid or not GUID_PATTERN.match(guid):
            return False

        if expected_prefix:
            return guid[:3].lower() == expected_prefix.lower()

        return True

    @staticmethod
    def parse_guid(guid: str, expected_prefix: str) -> uuid.UUID:
        """
        Decode a GUID to its UUID, checking the entity prefix.

        Raises:
            ValueError: If the format, prefix or encoding is invalid
        """
        if not GuidService.validate_guid(guid, expected_prefix):
            raise ValueError(
                f"Invalid GUID '{guid}' for prefix '{expected_prefix}'"
            )

        try:
            uuid_int = base32_crockford.decode(guid[4:].upper())
            return uuid.UUID(bytes=uuid_int.to_bytes(16, "big"))
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Invalid GUID encoding: {e}")

    @staticmethod
    def get_entity_type(guid: str) -> Optional[str]:
        """Entity type name for a GUID's prefix, or None if unknown."""
        if not guid or len(guid) < 3:
            return None
        return ENTITY_PREFIXES.get(guid[:3].lower())
