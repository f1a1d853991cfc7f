"""Request attributes consumed during policy evaluation.

A :class:`Request` pairs the caller's :class:`Token` (roles and API
attributes derived from the validated credential) with a :class:`Target`
(attributes of the object being acted upon, usually taken from the request
path or body).

Example
-------
>>> token = StaticToken(roles=["member"], api_attributes={"user_id": "u-1"})
>>> request = Request(token).with_target(MappingTarget({"user_id": "u-1"}))
>>> request.token.has_role("member")
True
"""
from __future__ import annotations

import dataclasses
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

_INTERPOLATION_PREFIX = "%("
_INTERPOLATION_SUFFIX = ")s"


# ---------------------------------------------------------------------------
# Token
# ---------------------------------------------------------------------------


class Token(ABC):
    """Attributes of the token that the caller presented with a request."""

    @abstractmethod
    def get_api_attribute(self, name: str) -> str | None:
        """Return the API attribute ``name``, or ``None`` when it is absent.

        API attributes appear on the left side of generic checks: the check
        ``project_name:cloud_admin`` matches when the API attribute
        ``project_name`` exists and equals ``cloud_admin``.
        """

    @abstractmethod
    def has_role(self, name: str) -> bool:
        """Return whether this token covers the role ``name``."""


class StaticToken(Token):
    """A :class:`Token` backed by a fixed role collection and attribute mapping.

    Parameters
    ----------
    roles:
        Names of the roles held by the token.
    api_attributes:
        Mapping of API attribute name to string value.
    """

    def __init__(
        self,
        roles: Iterable[str] = (),
        api_attributes: Mapping[str, str] | None = None,
    ) -> None:
        self._roles: frozenset[str] = frozenset(roles)
        self._api_attributes: dict[str, str] = dict(api_attributes or {})

    def get_api_attribute(self, name: str) -> str | None:
        return self._api_attributes.get(name)

    def has_role(self, name: str) -> bool:
        return name in self._roles

    def __repr__(self) -> str:
        return (
            f"StaticToken(roles={sorted(self._roles)!r}, "
            f"api_attributes={self._api_attributes!r})"
        )


# ---------------------------------------------------------------------------
# Target
# ---------------------------------------------------------------------------


class Target(ABC):
    """Attributes of the object that a request acts upon."""

    @abstractmethod
    def get_attribute(self, name: str) -> str | None:
        """Return the target attribute ``name``, or ``None`` when it is absent."""


class EmptyTarget(Target):
    """A target without any attributes."""

    def get_attribute(self, name: str) -> str | None:
        return None

    def __repr__(self) -> str:
        return "EmptyTarget()"


class MappingTarget(Target):
    """A :class:`Target` backed by a plain name → value mapping."""

    def __init__(self, attributes: Mapping[str, str] | None = None) -> None:
        self._attributes: dict[str, str] = dict(attributes or {})

    def get_attribute(self, name: str) -> str | None:
        return self._attributes.get(name)

    def __repr__(self) -> str:
        return f"MappingTarget({self._attributes!r})"


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Request:
    """Read-only view of one request: the caller's token and the target."""

    token: Token
    target: Target = field(default_factory=EmptyTarget)

    def with_target(self, target: Target) -> Request:
        """Return a copy of this request bound to ``target``."""
        return dataclasses.replace(self, target=target)


def resolve_target_attr_refs(text: str, target: Target) -> str | None:
    """Expand a ``%(name)s`` reference on the right-hand side of a check.

    Only a single reference spanning the whole text is recognized; any
    other text is returned unchanged.

    Parameters
    ----------
    text:
        Raw right-hand side of a check.
    target:
        Target whose attributes are referenced.

    Returns
    -------
    str | None
        The text to compare against, or ``None`` when the referenced
        target attribute does not exist.
    """
    if not (
        text.startswith(_INTERPOLATION_PREFIX) and text.endswith(_INTERPOLATION_SUFFIX)
    ):
        return text
    name = text[len(_INTERPOLATION_PREFIX):-len(_INTERPOLATION_SUFFIX)]
    return target.get_attribute(name)
