"""GitHub issue importer."""

import logging

from safer.lib.config import SaferConfig
from safer.lib.context import SaferContext
from safer.lib.errors import ImporterNotConfigured
from safer.lib.github import GitHubClient, Issue, create_client

from .base import ImportedItem, ImportMetadata, ImportOptions, ImportSource

logger = logging.getLogger(__name__)

# Checked in order; the first one contained in any label wins
PRIORITY_KEYWORDS = ["critical", "high", "medium", "low", "urgent"]
DEFAULT_PRIORITY = "medium"


def extract_priority(labels: list[str]) -> str:
    for label in labels:
        normalized = label.lower()
        for priority in PRIORITY_KEYWORDS:
            if priority in normalized:
                return priority
    return DEFAULT_PRIORITY


class GitHubImporter:
    """Turns open GitHub issues into import candidates."""

    platform = "github"

    def __init__(self, ctx: SaferContext, config: SaferConfig, client: GitHubClient | None = None):
        self.ctx = ctx
        self.config = config
        self._client = client

    @property
    def client(self) -> GitHubClient:
        if self._client is None:
            self._client = create_client(self.config)
        return self._client

    def is_configured(self) -> bool:
        if not self.config.github.enabled:
            return False
        try:
            self.client
        except ImporterNotConfigured as e:
            logger.warning(f"GitHub importer unavailable: {e}")
            return False
        return True

    def _login(self) -> str:
        return self.config.github.owner.lower()

    def _matches_assignee(self, issue: Issue) -> bool:
        login = self._login()
        if not login:
            return True
        people = [issue.author, *issue.assignees]
        return any(p.lower() == login for p in people if p)

    def fetch_items(self, options: ImportOptions) -> list[ImportedItem]:
        if options.state not in ("open", "all"):
            return []

        issues = self.client.list_issues(options.state)

        if options.assigned_to_me:
            issues = [i for i in issues if self._matches_assignee(i)]

        if options.label:
            wanted = options.label.lower()
            issues = [i for i in issues if any(name.lower() == wanted for name in i.labels)]

        issues = issues[:options.limit]
        return [self.convert_issue(issue) for issue in issues]

    def convert_issue(self, issue: Issue) -> ImportedItem:
        return ImportedItem(
            title=issue.title,
            description=issue.body.strip() or f"GitHub Issue #{issue.number}: {issue.title}",
            source=ImportSource(platform=self.platform, id=issue.number, url=issue.url),
            metadata=ImportMetadata(
                assignee=issue.assignees[0] if issue.assignees else issue.author,
                labels=list(issue.labels),
                status=issue.state,
                priority=extract_priority(issue.labels),
            ),
        )
