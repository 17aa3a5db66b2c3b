"""Identifier helpers."""

import ulid

ULID_LENGTH = 26
# Breeder ids come from the account service and are not ULIDs.
BREEDER_ID_LENGTH = 64


def generate_ulid() -> str:
    """Return a string ULID for primary keys."""
    return str(ulid.new())
