"""Tests for the importer flow and the GitHub importer."""

from unittest.mock import MagicMock, patch

import pytest

from safer.importers import (
    ALREADY_IMPORTED,
    GitHubImporter,
    ImportedItem,
    ImportOptions,
    ImportSource,
    ImportMetadata,
    Importer,
    convert_to_delivery_item,
    estimate_stress,
    extract_priority,
    run_import,
)
from safer.lib.errors import ImporterNotConfigured, StorageError
from safer.lib.github import Issue


def candidate(number: int, title: str | None = None, **metadata) -> ImportedItem:
    return ImportedItem(
        title=title or f"Issue {number}",
        description=f"Body {number}",
        source=ImportSource(platform="github", id=number,
                            url=f"https://github.com/acme/widgets/issues/{number}"),
        metadata=ImportMetadata(**metadata),
    )


class FakeImporter:
    platform = "github"

    def __init__(self, items, configured=True):
        self.items = items
        self.configured = configured
        self.fetched_with = None

    def fetch_items(self, options):
        self.fetched_with = options
        return list(self.items)

    def is_configured(self):
        return self.configured


@pytest.fixture
def recorder():
    return MagicMock()


def issue(number, labels=(), author="ada", assignees=(), body="") -> Issue:
    return Issue(
        number=number, title=f"Issue {number}", state="open",
        url=f"https://github.com/acme/widgets/issues/{number}", author=author,
        created_at="", updated_at="", body=body,
        labels=list(labels), assignees=list(assignees),
    )


class TestConversion:

    def test_fields(self, config):
        item = convert_to_delivery_item(
            candidate(42, "Fix export", assignee="grace", labels=["bug"], priority="high"),
            wip_slot=2, item_id="DI-007", config=config,
        )
        assert item.id == "DI-007"
        assert item.wip_slot == 2
        assert item.scope.outcome == "Complete: Fix export"
        assert item.scope.stakeholder == "grace"
        assert item.scope.context == "Imported from github"
        assert item.plan.value == "Addresses github 42"
        assert item.plan.objectives == ["Priority: high", "Label: bug"]
        assert item.tracking.issues == [42]
        assert item.tracking.review.stress_level == 4
        assert item.tracking.review.next_actions == ["Review github 42 for details"]
        assert [d.text for d in item.definition_of_done][-1] == "GitHub issue/PR closed"
        assert len(item.definition_of_done) == 4
        assert item.tracking.work_log[0].notes == "Source: https://github.com/acme/widgets/issues/42"

    def test_unassigned_goes_to_team(self, config):
        item = convert_to_delivery_item(candidate(1), 1, "DI-001", config)
        assert item.scope.stakeholder == "Team"
        assert item.plan.objectives == ["Complete assigned work"]

    def test_stress_estimate(self):
        assert estimate_stress("critical") == 4
        assert estimate_stress("medium") == 3
        assert estimate_stress("low") == 2
        assert estimate_stress("") == 2


class TestRunImport:

    def test_fake_importer_satisfies_protocol(self):
        assert isinstance(FakeImporter([]), Importer)

    def test_not_configured(self, repo, recorder):
        importer = FakeImporter([candidate(1)], configured=False)
        with pytest.raises(ImporterNotConfigured):
            run_import(importer, repo, recorder)
        assert importer.fetched_with is None

    def test_imports_into_free_slots(self, repo, recorder):
        result = run_import(FakeImporter([candidate(1), candidate(2)]), repo, recorder)
        assert result.success
        assert result.imported == 2
        assert [i.id for i in result.items] == ["DI-001", "DI-002"]
        assert [i.wip_slot for i in repo.list_active()] == [1, 2]
        recorder.commit.assert_called_once_with("Imported 2 item(s) from github")

    def test_full_wip_imports_nothing(self, repo, recorder, make_item):
        for n in range(3):
            make_item(f"T{n}")
        result = run_import(FakeImporter([candidate(n) for n in range(1, 6)]), repo, recorder)
        assert not result.success
        assert result.imported == 0
        assert result.skipped == 5
        assert "WIP limit reached (3/3)" in result.errors[0]
        assert len(repo.list_active()) == 3
        recorder.commit.assert_not_called()

    def test_uses_gaps_between_slots(self, repo, recorder, make_item):
        make_item("Middle", slot=2)
        result = run_import(FakeImporter([candidate(10), candidate(11)]), repo, recorder)
        assert result.imported == 2
        assert sorted(i.wip_slot for i in result.items) == [1, 3]
        assert len({i.id for i in repo.list_active()}) == 3

    def test_overflow_is_capped(self, repo, recorder, make_item):
        make_item("Existing")
        result = run_import(FakeImporter([candidate(n) for n in range(1, 5)]), repo, recorder)
        assert result.imported == 2
        assert result.skipped == 2
        assert "Only importing 2 of 4" in result.warnings[0]
        assert result.success

    def test_skips_already_imported(self, repo, recorder, make_item):
        active = make_item("Linked")
        active.tracking.issues.append(5)
        repo.save(active)
        archived = make_item("Old")
        archived.tracking.issues.append(6)
        repo.save(archived)
        repo.archive(archived)

        result = run_import(FakeImporter([candidate(5), candidate(6), candidate(7)]), repo, recorder)
        assert result.imported == 1
        assert result.skipped == 2
        assert result.items[0].tracking.issues == [7]

    def test_everything_already_imported(self, repo, recorder, make_item):
        item = make_item("Linked")
        item.tracking.issues.append(5)
        repo.save(item)
        result = run_import(FakeImporter([candidate(5)]), repo, recorder)
        assert result.success
        assert result.imported == 0
        assert result.warnings == [ALREADY_IMPORTED]
        assert result.errors == []

    def test_ids_continue_past_archive(self, repo, recorder, make_archived):
        make_archived("Old")
        make_archived("Older")
        result = run_import(FakeImporter([candidate(1), candidate(2)]), repo, recorder)
        assert [i.id for i in result.items] == ["DI-003", "DI-004"]

    def test_failed_item_does_not_stop_batch(self, repo, recorder):
        real_create = repo.create

        def create(item):
            if item.tracking.issues == [2]:
                raise StorageError("disk full")
            return real_create(item)

        with patch.object(repo, "create", side_effect=create):
            result = run_import(
                FakeImporter([candidate(1), candidate(2), candidate(3)]), repo, recorder,
            )

        assert result.success is True
        assert result.imported == 2
        assert result.skipped == 1
        assert result.errors == ["Failed to import Issue 2: disk full"]
        assert [i.tracking.issues for i in repo.list_active()] == [[1], [3]]
        recorder.commit.assert_called_once_with("Imported 2 item(s) from github")

    def test_nothing_fetched(self, repo, recorder):
        result = run_import(FakeImporter([]), repo, recorder)
        assert result.success
        assert result.warnings == []


class TestGitHubImporter:

    @pytest.fixture
    def client(self):
        return MagicMock()

    @pytest.fixture
    def importer(self, ctx, config, client):
        config.github.enabled = True
        config.github.owner = "ada"
        return GitHubImporter(ctx, config, client=client)

    def test_priority_keywords(self):
        assert extract_priority(["Priority: HIGH"]) == "high"
        assert extract_priority(["bug"]) == "medium"
        assert extract_priority(["urgent"]) == "urgent"

    def test_disabled_not_configured(self, ctx, config):
        assert GitHubImporter(ctx, config).is_configured() is False

    def test_configured_with_client(self, importer):
        assert importer.is_configured() is True

    def test_closed_state_returns_nothing(self, importer, client):
        assert importer.fetch_items(ImportOptions(state="closed")) == []
        client.list_issues.assert_not_called()

    def test_label_filter_case_insensitive(self, importer, client):
        client.list_issues.return_value = [issue(1, ["Bug"]), issue(2, ["docs"])]
        items = importer.fetch_items(ImportOptions(label="bug"))
        assert [i.source.id for i in items] == [1]

    def test_assigned_to_me(self, importer, client):
        client.list_issues.return_value = [
            issue(1, author="grace", assignees=["ADA"]),
            issue(2, author="grace"),
            issue(3, author="ada"),
        ]
        items = importer.fetch_items(ImportOptions(assigned_to_me=True))
        assert [i.source.id for i in items] == [1, 3]

    def test_limit(self, importer, client):
        client.list_issues.return_value = [issue(n) for n in range(1, 20)]
        assert len(importer.fetch_items(ImportOptions(limit=3))) == 3

    def test_convert_issue(self, importer):
        converted = importer.convert_issue(issue(8, ["critical"], author="grace"))
        assert converted.description == "GitHub Issue #8: Issue 8"
        assert converted.metadata.assignee == "grace"
        assert converted.metadata.priority == "critical"
        assert converted.source.url.endswith("/issues/8")
