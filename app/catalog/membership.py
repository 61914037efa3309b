"""Membership codecs for set-valued text columns.

A product stores its brand ids and occasion tokens inside single text
columns. Brands use the compact JSON array form (``[5,15]``), occasions a
bare comma list (``party,wedding``). Each codec can encode and decode its
form and build the SQL predicate for "column contains member".

Membership is tested with four delimiter-anchored alternatives per member
(first-of-many, middle, last-of-many, exact single). A plain substring test
would let ``1`` match ``[21]``.
"""

import json
from collections.abc import Iterable
from typing import Any

from sqlalchemy import ColumnElement, String, func, or_


class MembershipCodec:
    """Base codec for a delimited, optionally bracketed member list.

    Subclasses set ``opener`` and ``closer`` and convert members to and
    from their text form.
    """

    delimiter = ","
    opener = ""
    closer = ""

    def member_text(self, member: Any) -> str:
        """Render a single member as it appears in the column."""
        return str(member)

    def parse_member(self, text: str) -> Any:
        """Convert a member's text form back into a member."""
        return text

    def encode(self, members: Iterable[Any]) -> str:
        """Encode members into a column value.

        Order is preserved and duplicates are dropped.

        Args:
            members: Members to encode.

        Returns:
            Encoded column value.
        """
        texts = list(dict.fromkeys(self.member_text(m) for m in members))
        return f"{self.opener}{self.delimiter.join(texts)}{self.closer}"

    def decode(self, encoded: str | None) -> list[Any]:
        """Decode a column value into its members.

        Args:
            encoded: Column value (may be None or empty).

        Returns:
            Members in stored order.
        """
        if not encoded:
            return []
        body = encoded.strip()
        if self.opener and body.startswith(self.opener):
            body = body[len(self.opener):]
        if self.closer and body.endswith(self.closer):
            body = body[: -len(self.closer)]
        parts = (part.strip() for part in body.split(self.delimiter))
        return list(dict.fromkeys(self.parse_member(p) for p in parts if p))

    def match_target(self, column: Any) -> Any:
        """Expression the match alternatives are evaluated against."""
        return column

    def patterns(self, member: Any) -> tuple[str, str, str, str]:
        """Return the (prefix, infix, suffix, exact) texts for a member."""
        text = self.member_text(member)
        d = self.delimiter
        return (
            f"{self.opener}{text}{d}",
            f"{d}{text}{d}",
            f"{d}{text}{self.closer}",
            f"{self.opener}{text}{self.closer}",
        )

    def match_clauses(self, column: Any, member: Any) -> list[ColumnElement[bool]]:
        """Build the four match alternatives for one member.

        Values are bound parameters and LIKE wildcards are escaped.

        Args:
            column: Column holding the encoded set.
            member: Member to look for.

        Returns:
            Four boolean clauses, any of which signals membership.
        """
        prefix, infix, suffix, exact = self.patterns(member)
        target = self.match_target(column)
        return [
            target.startswith(prefix, autoescape=True),
            target.contains(infix, autoescape=True),
            target.endswith(suffix, autoescape=True),
            target == exact,
        ]

    def membership_predicate(
        self,
        column: Any,
        members: Iterable[Any],
    ) -> ColumnElement[bool] | None:
        """OR together the match alternatives of every member.

        Args:
            column: Column holding the encoded set.
            members: Members of which at least one must be present.

        Returns:
            Combined clause, or None when there are no members.
        """
        clauses: list[ColumnElement[bool]] = []
        for member in dict.fromkeys(members):
            clauses.extend(self.match_clauses(column, member))
        if not clauses:
            return None
        return or_(*clauses)

    def normalize(self, encoded: str) -> str:
        """Stored value as the match alternatives see it."""
        return encoded

    def contains(self, encoded: str | None, member: Any) -> bool:
        """Evaluate the four alternatives against a value in memory.

        This is the reference form of the SQL predicate built by
        ``match_clauses``; both must agree for every stored value.
        """
        if not encoded:
            return False
        encoded = self.normalize(encoded)
        prefix, infix, suffix, exact = self.patterns(member)
        return (
            encoded.startswith(prefix)
            or infix in encoded
            or encoded.endswith(suffix)
            or encoded == exact
        )


class BracketedIdCodec(MembershipCodec):
    """Integer ids stored as a compact JSON array, e.g. ``[5,15]``."""

    opener = "["
    closer = "]"

    def member_text(self, member: Any) -> str:
        return str(int(member))

    def parse_member(self, text: str) -> int:
        return int(text)

    def encode(self, members: Iterable[Any]) -> str:
        ids = list(dict.fromkeys(int(m) for m in members))
        return json.dumps(ids, separators=(",", ":"))

    def decode(self, encoded: str | None) -> list[int]:
        if not encoded:
            return []
        try:
            values = json.loads(encoded)
        except ValueError:
            return super().decode(encoded)
        if isinstance(values, int):
            values = [values]
        return list(dict.fromkeys(int(v) for v in values))


class DelimitedTokenCodec(MembershipCodec):
    """Free-text tokens stored as a bare comma list, e.g. ``party,wedding``.

    Tokens are trimmed, lower-cased and may not contain the delimiter, so
    every alternative is anchored on a whole token. The column is lowered
    too, since LIKE folds case on some backends and ``=`` does not.
    """

    def member_text(self, member: Any) -> str:
        text = str(member).strip().lower()
        if not text:
            raise ValueError("Token cannot be empty")
        if self.delimiter in text:
            raise ValueError(f"Token cannot contain '{self.delimiter}': {text!r}")
        return text

    def match_target(self, column: Any) -> Any:
        return func.lower(column, type_=String)

    def normalize(self, encoded: str) -> str:
        return encoded.lower()


BRAND_CODEC = BracketedIdCodec()
OCCASION_CODEC = DelimitedTokenCodec()
