"""
=============================================================================
USER RECORD
=============================================================================

The one resource this server manages.

    {"id": 1, "name": "Amaan", "email": "amaan@example.com"}

The id is assigned by the store (POST) or taken from the path (PUT); any
id in a request body is type-checked and then ignored.

=============================================================================
DECODING RULES
=============================================================================

User.from_json() mirrors decoding JSON into a typed record:

    body                                   result
    ─────────────────────────────────────  ─────────────────────────────
    {"name": "A", "email": "a@x.com"}      User(0, "A", "a@x.com")
    {"name": "A"}                          User(0, "A", "")
    {"name": null}                         User(0, "", "")
    {"name": "A", "role": "admin"}         User(0, "A", "")   extra key ignored
    {"id": 99, "name": "A"}                User(0, "A", "")   id ignored
    {"id": "99"}                           UserDecodeError    wrong type
    {"name": 5}                            UserDecodeError    wrong type
    [1, 2]   /   "x"   /   b""   /   "{"   UserDecodeError

No other validation happens: empty names and malformed emails are stored
as given.

=============================================================================
"""

from dataclasses import dataclass, asdict, replace
import json


class UserDecodeError(ValueError):
    """Request body could not be decoded into a User."""


@dataclass(frozen=True)
class User:
    id: int = 0
    name: str = ""
    email: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    def with_id(self, user_id: int) -> "User":
        """Copy of this record carrying the given id."""
        return replace(self, id=user_id)

    @classmethod
    def from_json(cls, payload: bytes) -> "User":
        """
        Decode a request body.

        Raises:
            UserDecodeError: On empty, invalid or mistyped input.
        """
        if not payload.strip():
            raise UserDecodeError("empty body")

        try:
            data = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise UserDecodeError(f"invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise UserDecodeError(f"expected a JSON object, got {type(data).__name__}")

        user_id = data.get("id")
        # bool is an int subclass; true is not an id
        if user_id is not None and (isinstance(user_id, bool) or not isinstance(user_id, int)):
            raise UserDecodeError("field 'id' must be an integer")

        return cls(name=_string_field(data, "name"), email=_string_field(data, "email"))


def _string_field(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise UserDecodeError(f"field {key!r} must be a string")
    return value
