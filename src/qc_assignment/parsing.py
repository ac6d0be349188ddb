from __future__ import annotations

import re

from .engine import Role, Target

_SEPARATORS = re.compile(r"[\n,]+")
_TARGET_ENTRY = re.compile(r"^(?P<name>.*?)\s*\((?P<role>[^()]*)\)$")


def parse_names(text: str | None) -> list[str]:
    if not text:
        return []
    return [name.strip() for name in _SEPARATORS.split(text) if name.strip()]


def parse_target(entry: str, default_role: str = Role.AA.value) -> Target:
    """Read ``"Name (Role)"`` or a bare ``"Name"``.

    The role is kept verbatim so an unknown role still reaches the engine.
    """
    entry = entry.strip()
    match = _TARGET_ENTRY.match(entry)
    if match and match.group("name").strip():
        role = match.group("role").strip() or default_role
        return Target(name=match.group("name").strip(), role=role)
    return Target(name=entry, role=default_role)


def parse_targets(text: str | None, default_role: str = Role.AA.value) -> list[Target]:
    return [parse_target(entry, default_role) for entry in parse_names(text)]


def format_target(target: Target) -> str:
    return f"{target.name} ({target.role})"
