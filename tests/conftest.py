"""Shared pytest fixtures for SAFER tests."""

from datetime import datetime, timezone

import pytest

from safer.lib.config import SaferConfig, save_config
from safer.lib.context import SaferContext
from safer.lib.items import build_item
from safer.lib.repository import ItemRepository


@pytest.fixture()
def ctx(tmp_path) -> SaferContext:
    """Initialized data root under tmp_path (no git repository)."""
    context = SaferContext(tmp_path / "safer")
    context.ensure_layout()
    return context


@pytest.fixture()
def config(ctx) -> SaferConfig:
    cfg = SaferConfig()
    save_config(ctx, cfg)
    return cfg


@pytest.fixture()
def repo(ctx, config) -> ItemRepository:
    return ItemRepository(ctx, config)


@pytest.fixture()
def make_item(repo):
    """Factory creating active items through the repository."""

    def _make(title="Task", slot=None, created=None, dod=(), **fields):
        item = build_item(
            repo.next_id(),
            title,
            slot if slot is not None else repo.next_wip_slot(),
            repo.config,
            now=created,
            dod=list(dod),
            **fields,
        )
        return repo.create(item)

    return _make


@pytest.fixture()
def make_archived(repo, make_item):
    """Factory creating archived items with a given archive time."""

    def _make(title="Done", archived_at=None, **fields):
        item = make_item(title, **fields)
        repo.archive(item, now=archived_at or datetime.now(timezone.utc))
        return item

    return _make
