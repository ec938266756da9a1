"""Deterministic project naming.

Project names are derived from the actor's email so that repeated
deliveries of the same event target the same project. They are not
filesystem paths or slugs of any other kind.
"""

from __future__ import annotations

import re

_DISALLOWED = re.compile(r"[^a-z0-9-]")
_DASH_RUNS = re.compile(r"-+")

ACTOR_SUFFIX_LENGTH = 6


def sanitize_name(value: str) -> str:
    """Lower-case ``value`` and reduce it to ``[a-z0-9-]`` with single dashes.

    Examples
    --------
    >>> sanitize_name("John_Doe+test")
    'john-doe-test'

    """
    replaced = _DISALLOWED.sub("-", value.lower())
    return _DASH_RUNS.sub("-", replaced).strip("-")


def derive_project_name(email: str, *, suffix: str | None = None) -> str:
    """Derive a project name from the local part of an email address.

    Parameters
    ----------
    email:
        Actor email address. Text after the first ``@`` is ignored; a value
        without ``@`` is used whole.
    suffix:
        Optional disambiguator appended as ``<name>-<suffix>`` after the
        same sanitisation.

    Returns
    -------
    str
        The sanitised name. May be empty when the local part contains no
        usable characters.

    Examples
    --------
    >>> derive_project_name("john.doe@example.com")
    'john-doe'
    >>> derive_project_name(".john.@example.com")
    'john'
    >>> derive_project_name("john@example.com", suffix="user-1")
    'john-user-1'

    """
    local_part = email.split("@", 1)[0]
    name = sanitize_name(local_part)
    if suffix is None:
        return name
    cleaned_suffix = sanitize_name(suffix)
    return "-".join(part for part in (name, cleaned_suffix) if part)


def actor_suffix(actor_id: str) -> str:
    """Return the trailing characters of an actor id used as a name suffix."""
    return actor_id[-ACTOR_SUFFIX_LENGTH:]


__all__ = [
    "ACTOR_SUFFIX_LENGTH",
    "actor_suffix",
    "derive_project_name",
    "sanitize_name",
]
