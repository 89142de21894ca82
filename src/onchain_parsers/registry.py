"""Caller-curated set of trusted parser handlers."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

import requests

from .exceptions import InvalidInput, ParserDispatchError
from .types import Address, RegistryEntry
from .utils import normalise_address, normalise_schema_tag

logger = logging.getLogger(__name__)


class ParserRegistry:
    """Maintain handler addresses the caller trusts, with labels and default schemas.

    The registry is advisory: it supplies default schema tags and answers
    membership questions. It is only ever changed by explicit calls.
    """

    def __init__(self, entries: Sequence[RegistryEntry] | None = None) -> None:
        self._entries: dict[Address, RegistryEntry] = {}
        for entry in entries or ():
            self.add(entry.handler_address, entry.trusted_label, entry.default_schema_tag)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def add(
        self,
        handler_address: Address,
        trusted_label: str,
        default_schema_tag: Any | None = None,
        *,
        replace: bool = False,
    ) -> RegistryEntry:
        address = normalise_address(handler_address)
        schema_tag = normalise_schema_tag(default_schema_tag) if default_schema_tag else None

        if address in self._entries and not replace:
            raise InvalidInput(
                f"Handler {address} is already registered",
                field="handler_address",
                value=address,
                details={"label": self._entries[address].trusted_label},
            )

        entry = RegistryEntry(
            handler_address=address,
            trusted_label=trusted_label,
            default_schema_tag=schema_tag,
        )
        self._entries[address] = entry
        logger.info("Registered parser %s (%s) schema=%s", address, trusted_label, schema_tag)
        return entry

    def remove(self, handler_address: Address) -> RegistryEntry:
        address = normalise_address(handler_address)
        entry = self._entries.pop(address, None)
        if entry is None:
            raise InvalidInput(
                f"Handler {address} is not registered",
                field="handler_address",
                value=address,
            )
        logger.info("Removed parser %s (%s)", address, entry.trusted_label)
        return entry

    def clear(self) -> None:
        self._entries.clear()
        logger.info("Cleared parser registry")

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def get(self, handler_address: Address) -> RegistryEntry | None:
        try:
            address = normalise_address(handler_address)
        except InvalidInput:
            return None
        return self._entries.get(address)

    def default_schema_for(self, handler_address: Address) -> str | None:
        entry = self.get(handler_address)
        return entry.default_schema_tag if entry is not None else None

    def entries(self) -> list[RegistryEntry]:
        return list(self._entries.values())

    def __contains__(self, handler_address: object) -> bool:
        return isinstance(handler_address, str) and self.get(handler_address) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[RegistryEntry]:
        return iter(list(self._entries.values()))

    # ------------------------------------------------------------------
    # Manifests
    # ------------------------------------------------------------------
    def load_manifest(self, manifest: Any, *, replace: bool = False) -> list[RegistryEntry]:
        """Register every handler listed in a JSON-like manifest.

        Accepts either a list of entry mappings, a mapping with a ``parsers``
        list, or a mapping of address to label. The manifest is validated in
        full before anything is registered.
        """

        items = _manifest_items(manifest)
        parsed: list[RegistryEntry] = []
        seen: set[Address] = set()
        for index, item in enumerate(items):
            entry = RegistryEntry.from_dict(item)
            try:
                address = normalise_address(entry.handler_address)
            except InvalidInput as exc:
                raise InvalidInput(
                    f"Manifest entry {index} has an invalid handler address",
                    field="handler_address",
                    value=entry.handler_address,
                    details={"index": index},
                ) from exc
            if address in seen or (address in self._entries and not replace):
                raise InvalidInput(
                    f"Handler {address} is already registered",
                    field="handler_address",
                    value=address,
                    details={"index": index},
                )
            seen.add(address)
            parsed.append(entry)

        return [
            self.add(
                entry.handler_address,
                entry.trusted_label,
                entry.default_schema_tag,
                replace=replace,
            )
            for entry in parsed
        ]

    def fetch_manifest(
        self,
        url: str,
        session: requests.Session | None = None,
        *,
        timeout: float = 10.0,
        replace: bool = False,
    ) -> list[RegistryEntry]:
        """Download a manifest over HTTP(S) and load it.

        This performs a blocking ``requests`` call. From async code, run it off
        the event loop, e.g. ``await asyncio.to_thread(registry.fetch_manifest, url)``.
        """

        http = session or requests.Session()
        logger.debug("Fetching parser manifest from %s", url)
        try:
            response = http.get(url, timeout=timeout, allow_redirects=False)
            response.raise_for_status()
            if 300 <= response.status_code < 400:
                raise InvalidInput(
                    "Manifest source responded with a redirect",
                    field="url",
                    value=url,
                    details={
                        "status": response.status_code,
                        "location": response.headers.get("Location"),
                    },
                )
            payload = response.json()
        except ParserDispatchError:
            raise
        except (requests.RequestException, ValueError) as exc:
            raise InvalidInput(
                f"Failed to fetch parser manifest from {url}",
                field="url",
                value=url,
                details={"error": str(exc)},
            ) from exc
        finally:
            if session is None:
                http.close()

        return self.load_manifest(payload, replace=replace)


def _manifest_items(manifest: Any) -> list[Mapping[str, Any]]:
    if isinstance(manifest, Mapping):
        parsers = manifest.get("parsers")
        if parsers is not None:
            manifest = parsers
        else:
            return [
                {"handlerAddress": address, "trustedLabel": label}
                for address, label in manifest.items()
            ]

    if not isinstance(manifest, Sequence) or isinstance(manifest, str | bytes):
        raise InvalidInput(
            "Parser manifest must be a list of entries or a mapping",
            field="manifest",
            value=manifest,
        )

    items: list[Mapping[str, Any]] = []
    for index, item in enumerate(manifest):
        if not isinstance(item, Mapping):
            raise InvalidInput(
                f"Manifest entry {index} must be a mapping",
                field="manifest",
                value=item,
            )
        items.append(item)
    return items
