"""Narrowing a configuration down to the providers and resources chosen for a fetch."""

from __future__ import annotations

from typing import Iterable

from .config import Config

ALL_RESOURCES = "*"


class NothingToFetchError(Exception):
    """No provider is left to fetch after filtering."""

    def __init__(self) -> None:
        super().__init__("nothing to fetch")


def parse_selectors(selectors: Iterable[str]) -> dict[str, list[str] | None]:
    """Map each ``provider[:res1,res2]`` selector to its resources.

    ``None`` means every resource configured for the provider (``aws`` or
    ``aws:*``). A later selector for the same provider replaces an earlier one.
    """
    chosen: dict[str, list[str] | None] = {}
    for item in selectors:
        provider, sep, resources = item.partition(":")
        if sep and resources != ALL_RESOURCES:
            chosen[provider] = resources.split(",")
        else:
            chosen[provider] = None
    return chosen


def filter_config_providers(selectors: Iterable[str] | None, config: Config | None) -> Config | None:
    """Keep only the selected providers in ``config``, modifying it in place.

    Provider blocks are matched by alias, or by name when they have no alias;
    a selector with resources replaces the block's resource list. Required
    providers whose name no selected block uses are dropped. Nothing changes
    when there are no selectors or the configuration has no providers.
    Raises :class:`NothingToFetchError` when nothing is left.
    """
    selector_list = list(selectors or ())
    if (
        not selector_list
        or config is None
        or not config.providers
        or not config.cloudquery.providers
    ):
        return config

    chosen = parse_selectors(selector_list)

    required: set[str] = set()
    kept = []
    for provider in config.providers:
        key = provider.alias or provider.name
        if key not in chosen:
            continue
        required.add(provider.name)
        resources = chosen[key]
        if resources:
            provider.resources = list(resources)
        kept.append(provider)

    config.cloudquery.providers = [
        p for p in config.cloudquery.providers if p.name in required
    ]
    config.providers = kept

    if not config.cloudquery.providers or not config.providers:
        raise NothingToFetchError()
    return config