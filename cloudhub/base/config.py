"""
Shared configuration registry.

A :class:`Config` holds named fields that every loaded service package can
read, override or extend.  Fields carry a default, an optional ``match``
constraint checked on write, and an ``allow_nil`` flag checked on read::

    config = Config()
    config.add_field("timeout", 30, match=int)
    config.add_alias("deadline", "timeout")
    config.deadline = 60
    config.timeout  # -> 60

Defaults are either :class:`Static` values or :class:`Computed` callables.
A computed default is re-evaluated on every read that finds the field
unset; it is never cached.
"""

from __future__ import annotations

import json
import os
import re
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Union

from cloudhub.base.exceptions import (
    ConfigError,
    ConfigTypeError,
    ConfigValueMissingError,
    FieldAlreadyExistsError,
    UnknownFieldError,
)
from cloudhub.base.logger import hub_logger

_log = hub_logger.bind("config")


@dataclass(frozen=True)
class Static:
    """A default fixed at registration time."""

    value: Any = None

    def resolve(self) -> Any:
        return self.value


@dataclass(frozen=True)
class Computed:
    """A default produced by calling ``fn`` whenever the field is read unset."""

    fn: Callable[[], Any]

    def resolve(self) -> Any:
        return self.fn()


Default = Union[Static, Computed]


def deferred(fn: Callable[[], Any]) -> Computed:
    """Wrap a zero-argument callable as a computed default.

    Works as a plain call or as a decorator::

        @deferred
        def default_region():
            return os.environ.get("REGION")
    """
    return Computed(fn)


def _normalize_match(match: Any, default: Default) -> tuple[Any, ...]:
    if match is None:
        # Infer the constraint from a static default, as a type check.
        if isinstance(default, Static) and default.value is not None:
            return (type(default.value),)
        return ()
    if isinstance(match, (list, tuple)):
        return tuple(match)
    return (match,)


def _matches(matcher: Any, value: Any) -> bool:
    if isinstance(matcher, type):
        return isinstance(value, matcher)
    if isinstance(matcher, re.Pattern):
        return isinstance(value, str) and matcher.search(value) is not None
    if callable(matcher):
        return bool(matcher(value))
    return matcher == value


@dataclass(frozen=True)
class FieldSpec:
    """Descriptor for a single registered field."""

    name: str
    default: Default
    match: tuple[Any, ...] = ()
    enum: tuple[Any, ...] | None = None
    allow_nil: bool = False

    def accepts(self, value: Any) -> bool:
        """Return True if *value* may be written to this field."""
        if value is None:
            return self.allow_nil
        if self.enum is not None and value not in self.enum:
            return False
        return not self.match or any(_matches(m, value) for m in self.match)


class Config:
    """A registry of named fields, aliases and nested sub-configurations.

    Fields are read and written either as attributes (``config.project_id``)
    or as items (``config["project_id"]``).  Registration and writes are
    serialised by a re-entrant lock; reads are not.
    """

    def __init__(self) -> None:
        object.__setattr__(self, "_fields", {})
        object.__setattr__(self, "_values", {})
        object.__setattr__(self, "_aliases", {})
        object.__setattr__(self, "_subconfigs", {})
        object.__setattr__(self, "_lock", threading.RLock())

    @classmethod
    def create(cls, block: Callable[[Config], Any] | None = None) -> Config:
        """Create a new config and apply *block* to it, if given."""
        config = cls()
        if block is not None:
            block(config)
        return config

    # ── Registration ──────────────────────────────────────────────────

    def add_field(
        self,
        name: str,
        default: Any = None,
        *,
        match: Any = None,
        enum: Any = None,
        allow_nil: bool = False,
    ) -> Config:
        """Register a new field.

        Args:
            name: Field name.
            default: A plain value, :class:`Static` or :class:`Computed`.
            match: Type, tuple of types, compiled regex, predicate, or a
                list of these. A value is valid if any of them matches.
                Inferred from a non-None static default when omitted.
            enum: Optional collection of permitted values.
            allow_nil: Whether the field may resolve to ``None``.

        Returns:
            This config, for chaining.

        Raises:
            FieldAlreadyExistsError: If *name* is already a field, alias or
                sub-configuration.
        """
        if not isinstance(default, (Static, Computed)):
            default = Static(default)
        spec = FieldSpec(
            name=name,
            default=default,
            match=_normalize_match(match, default),
            enum=tuple(enum) if enum is not None else None,
            allow_nil=allow_nil,
        )
        with self._lock:
            self._check_new_name(name)
            self._fields[name] = spec
        _log.debug(f"Registered config field '{name}'")
        return self

    def add_alias(self, alias: str, canonical: str) -> Config:
        """Make *alias* another name for the field or sub-config *canonical*.

        Raises:
            UnknownFieldError: If *canonical* is not a field or sub-config.
            FieldAlreadyExistsError: If *alias* is already taken.
        """
        with self._lock:
            if canonical not in self._fields and canonical not in self._subconfigs:
                raise UnknownFieldError(
                    f"Cannot alias '{alias}' to unknown config key '{canonical}'"
                )
            self._check_new_name(alias)
            self._aliases[alias] = canonical
        return self

    def add_config(
        self,
        name: str,
        config: Config | None = None,
        block: Callable[[Config], Any] | None = None,
    ) -> Config:
        """Register a nested sub-configuration and return it.

        Service packages use this to hang their own fields under the shared
        registry, e.g. ``configure().add_config("storage")``.
        """
        sub = config if config is not None else Config()
        if not isinstance(sub, Config):
            raise ConfigTypeError(f"Sub-configuration '{name}' must be a Config")
        with self._lock:
            self._check_new_name(name)
            self._subconfigs[name] = sub
        if block is not None:
            block(sub)
        _log.debug(f"Registered sub-configuration '{name}'")
        return sub

    def _check_new_name(self, name: str) -> None:
        if not isinstance(name, str) or not name.isidentifier():
            raise ConfigError(f"Invalid config key: {name!r}")
        if name.startswith("_") or hasattr(type(self), name):
            raise ConfigError(f"Reserved config key: '{name}'")
        if name in self._fields or name in self._aliases or name in self._subconfigs:
            raise FieldAlreadyExistsError(f"Config key already exists: '{name}'")

    # ── Reading ───────────────────────────────────────────────────────

    def _resolve_name(self, name: str) -> str:
        return self._aliases.get(name, name)

    def _spec(self, key: str, requested: str) -> FieldSpec:
        spec = self._fields.get(key)
        if spec is None:
            raise UnknownFieldError(f"Unknown config key: '{requested}'")
        return spec

    def _current(self, spec: FieldSpec) -> Any:
        if spec.name in self._values:
            return self._values[spec.name]
        return spec.default.resolve()

    def __getitem__(self, name: str) -> Any:
        key = self._resolve_name(name)
        if key in self._subconfigs:
            return self._subconfigs[key]
        spec = self._spec(key, name)
        value = self._current(spec)
        if value is None and not spec.allow_nil:
            raise ConfigValueMissingError(f"No value found for config field '{key}'")
        return value

    def get(self, name: str, default: Any = None) -> Any:
        """Read *name*, returning *default* instead of a ``None`` value."""
        key = self._resolve_name(name)
        if key in self._subconfigs:
            return self._subconfigs[key]
        value = self._current(self._spec(key, name))
        return default if value is None else value

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    # ── Writing ───────────────────────────────────────────────────────

    def __setitem__(self, name: str, value: Any) -> None:
        key = self._resolve_name(name)
        if key in self._subconfigs:
            raise ConfigTypeError(f"Cannot overwrite sub-configuration '{key}'")
        spec = self._spec(key, name)
        if not spec.accepts(value):
            raise ConfigTypeError(f"Invalid value {value!r} for config field '{key}'")
        with self._lock:
            self._values[key] = value

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
        else:
            self[name] = value

    def set(self, name: str, value: Any) -> Config:
        """Write *value* to *name* and return this config."""
        self[name] = value
        return self

    def reset(self, name: str | None = None) -> None:
        """Drop explicitly set values so fields fall back to their defaults.

        With no *name*, resets every field here and in every sub-config.
        """
        with self._lock:
            if name is None:
                self._values.clear()
                for sub in self._subconfigs.values():
                    sub.reset()
                return
            key = self._resolve_name(name)
            if key in self._subconfigs:
                self._subconfigs[key].reset()
            elif key in self._fields:
                self._values.pop(key, None)
            else:
                raise UnknownFieldError(f"Unknown config key: '{name}'")

    def delete(self, name: str | None = None) -> None:
        """Remove a field, sub-config or alias. With no *name*, remove all."""
        with self._lock:
            if name is None:
                self._fields.clear()
                self._values.clear()
                self._aliases.clear()
                self._subconfigs.clear()
                return
            if name in self._aliases:
                del self._aliases[name]
                return
            if name not in self._fields and name not in self._subconfigs:
                raise UnknownFieldError(f"Unknown config key: '{name}'")
            self._fields.pop(name, None)
            self._values.pop(name, None)
            self._subconfigs.pop(name, None)
            for alias in [a for a, target in self._aliases.items() if target == name]:
                del self._aliases[alias]

    # ── Introspection ─────────────────────────────────────────────────

    def is_set(self, name: str) -> bool:
        return self._resolve_name(name) in self._values

    def is_field(self, name: str) -> bool:
        return name in self._fields

    def is_alias(self, name: str) -> bool:
        return name in self._aliases

    def is_subconfig(self, name: str) -> bool:
        return name in self._subconfigs

    @property
    def fields(self) -> list[str]:
        return list(self._fields)

    @property
    def aliases(self) -> dict[str, str]:
        return dict(self._aliases)

    @property
    def subconfigs(self) -> list[str]:
        return list(self._subconfigs)

    def __contains__(self, name: object) -> bool:
        return name in self._fields or name in self._aliases or name in self._subconfigs

    def __iter__(self) -> Iterator[str]:
        return iter([*self._fields, *self._subconfigs])

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self._fields) | set(self._subconfigs))

    def to_dict(self) -> dict[str, Any]:
        """Snapshot of current values; ``None`` where nothing resolves."""
        result: dict[str, Any] = {name: self.get(name) for name in self._fields}
        for name, sub in self._subconfigs.items():
            result[name] = sub.to_dict()
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}(fields={self.fields!r}, subconfigs={self.subconfigs!r})"


def credentials_from_env(*names: str) -> dict[str, Any] | str | None:
    """Return credentials from the first of *names* with non-blank content.

    Content that parses as a JSON object is returned as a dict (keyfile
    contents); anything else is returned as a stripped string and treated
    as a keyfile path.  Returns None if none of the variables are set.
    """
    for name in names:
        data = os.environ.get(name, "").strip()
        if not data:
            continue
        try:
            parsed = json.loads(data)
        except json.JSONDecodeError:
            return data
        return parsed if isinstance(parsed, dict) else data
    return None


__all__ = [
    "Config",
    "Computed",
    "Default",
    "FieldSpec",
    "Static",
    "credentials_from_env",
    "deferred",
]
