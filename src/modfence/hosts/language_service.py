"""Language-service wrapper: restriction diagnostics and completion filtering.

:class:`RestrictedLanguageService` wraps an editor's code-intelligence
service.  It overrides exactly two calls and forwards everything else to
the wrapped service unchanged::

    service = RestrictedLanguageService(host_service, config.restrictions)
    service.get_semantic_diagnostics("/project/src/pages/Home.ts")
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from modfence.policy.index_locator import IndexDirectoryCache
from modfence.policy.restrictions import DEFAULT_RESTRICTIONS
from modfence.policy.validator import (
    resolve_source_reference,
    should_include_in_completions,
    validate_import,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from modfence.policy.restrictions import Restriction

RESTRICTION_DIAGNOSTIC_CODE = 9999
RESTRICTION_DIAGNOSTIC_SOURCE = "module-restrictions"
MODULE_COMPLETION_KIND = "module"


@dataclass(frozen=True)
class ServiceDiagnostic:
    """A diagnostic as exchanged with the language-service host."""

    file_name: str
    start: int
    length: int
    message: str
    category: str = "error"
    code: int | None = None
    source: str | None = None


@dataclass(frozen=True)
class CompletionEntry:
    name: str
    kind: str


@dataclass(frozen=True)
class CompletionInfo:
    entries: tuple[CompletionEntry, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ImportSite:
    """Location of a module specifier literal inside an import statement."""

    specifier: str
    start: int
    length: int


class LanguageService(Protocol):
    """The subset of the host service the wrapper relies on."""

    def get_semantic_diagnostics(self, file_name: str) -> list[ServiceDiagnostic]: ...

    def get_completions_at_position(
        self, file_name: str, position: int
    ) -> CompletionInfo | None: ...

    def get_import_specifiers(self, file_name: str) -> list[ImportSite]: ...

    def is_import_position(self, file_name: str, position: int) -> bool: ...


class RestrictedLanguageService:
    """Forwarding wrapper that adds import-restriction checks to a language service."""

    def __init__(
        self,
        inner: LanguageService,
        restrictions: Iterable[Restriction] = DEFAULT_RESTRICTIONS,
        *,
        cache: IndexDirectoryCache | None = None,
    ) -> None:
        self._inner = inner
        self._restrictions = tuple(restrictions)
        self._cache = cache if cache is not None else IndexDirectoryCache()

    @property
    def inner(self) -> LanguageService:
        return self._inner

    @property
    def index_cache(self) -> IndexDirectoryCache:
        """Cache hosts should invalidate when they observe file changes."""
        return self._cache

    # -- overridden calls ---------------------------------------------------

    def get_semantic_diagnostics(self, file_name: str) -> list[ServiceDiagnostic]:
        """Return the host's diagnostics plus one per restricted import."""
        diagnostics = list(self._inner.get_semantic_diagnostics(file_name))

        for site in self._inner.get_import_specifiers(file_name):
            result = validate_import(
                site.specifier,
                file_name,
                self._restrictions,
                resolver=resolve_source_reference,
                cache=self._cache,
            )
            violation = result.first_violation
            if violation is None:
                continue
            diagnostics.append(
                ServiceDiagnostic(
                    file_name=file_name,
                    start=site.start,
                    length=site.length,
                    message=f"Module import restricted: {violation.message}",
                    code=RESTRICTION_DIAGNOSTIC_CODE,
                    source=RESTRICTION_DIAGNOSTIC_SOURCE,
                )
            )

        return diagnostics

    def get_completions_at_position(self, file_name: str, position: int) -> CompletionInfo | None:
        """Return the host's completions without module entries that may not be imported."""
        completions = self._inner.get_completions_at_position(file_name, position)
        if completions is None:
            return None

        if not self._inner.is_import_position(file_name, position):
            return completions

        entries = tuple(
            entry
            for entry in completions.entries
            if entry.kind != MODULE_COMPLETION_KIND
            or should_include_in_completions(
                entry.name,
                file_name,
                self._restrictions,
                resolver=resolve_source_reference,
                cache=self._cache,
            )
        )
        return dataclasses.replace(completions, entries=entries)

    # -- forwarded calls ----------------------------------------------------

    def get_import_specifiers(self, file_name: str) -> list[ImportSite]:
        return self._inner.get_import_specifiers(file_name)

    def is_import_position(self, file_name: str, position: int) -> bool:
        return self._inner.is_import_position(file_name, position)

    def __getattr__(self, name: str) -> Any:
        # Only reached for attributes not defined on the wrapper.
        return getattr(self._inner, name)
