"""
GitHub integration helpers.

Reads issues and pull requests through the gh CLI when it is installed and
authenticated, falling back to the REST API with the configured token.
"""

import json
import logging
import subprocess
from dataclasses import dataclass, field
from typing import Any

import httpx

from .config import SaferConfig
from .errors import GitHubError, ImporterNotConfigured

logger = logging.getLogger(__name__)


# Timeout for GitHub CLI operations (seconds)
GH_TIMEOUT_SECONDS = 30

# Timeout for REST API requests (seconds)
API_TIMEOUT_SECONDS = 15.0

API_BASE_URL = "https://api.github.com"

# Upper bound on items fetched per listing
LIST_LIMIT = 100

METHOD_GH_CLI = "gh-cli"
METHOD_TOKEN = "token"
METHOD_NONE = "none"


@dataclass
class Issue:
    number: int
    title: str
    state: str                                 # open, closed
    url: str
    author: str
    created_at: str
    updated_at: str
    body: str = ""
    labels: list[str] = field(default_factory=list)
    assignees: list[str] = field(default_factory=list)


@dataclass
class PullRequest:
    number: int
    title: str
    state: str
    url: str
    author: str
    created_at: str
    updated_at: str
    head_ref: str = ""
    base_ref: str = ""


@dataclass
class GhStatus:
    """What `gh` can do on this machine."""
    available: bool
    authenticated: bool
    repo: str | None = None                    # owner/name of the current directory


@dataclass
class GitHubStatus:
    """Integration status for display."""
    enabled: bool
    method: str
    repository: str | None
    message: str


def check_gh_cli() -> GhStatus:
    """Check if gh CLI is installed, authenticated, and which repo it sees."""
    try:
        result = subprocess.run(
            ["gh", "--version"],
            capture_output=True,
            timeout=5,
        )
        if result.returncode != 0:
            return GhStatus(available=False, authenticated=False)

        result = subprocess.run(
            ["gh", "auth", "status"],
            capture_output=True,
            text=True,
            timeout=10,
        )
        if result.returncode != 0:
            return GhStatus(available=True, authenticated=False)

        result = subprocess.run(
            ["gh", "repo", "view", "--json", "nameWithOwner", "-q", ".nameWithOwner"],
            capture_output=True,
            text=True,
            timeout=GH_TIMEOUT_SECONDS,
        )
        repo = result.stdout.strip() if result.returncode == 0 else None
        return GhStatus(available=True, authenticated=True, repo=repo or None)

    except FileNotFoundError:
        return GhStatus(available=False, authenticated=False)
    except subprocess.TimeoutExpired:
        logger.warning("GitHub CLI timed out during status check")
        return GhStatus(available=False, authenticated=False)


def _login(user: Any) -> str:
    if isinstance(user, dict):
        return user.get("login", "")
    return ""


def _label_names(labels: Any) -> list[str]:
    return [label["name"] if isinstance(label, dict) else str(label) for label in labels or []]


class GitHubClient:
    """Read-only GitHub client for one repository."""

    def __init__(
        self,
        owner: str,
        repo: str,
        method: str,
        token: str = "",
        http_client: httpx.Client | None = None,
    ):
        self.owner = owner
        self.repo = repo
        self.method = method
        self.token = token
        self._http = http_client

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    # --- transports ---

    def _gh(self, args: list[str]) -> Any:
        """Run a gh command and decode its JSON output."""
        try:
            result = subprocess.run(
                ["gh"] + args,
                capture_output=True,
                text=True,
                timeout=GH_TIMEOUT_SECONDS,
            )
        except subprocess.TimeoutExpired:
            raise GitHubError(f"GitHub CLI timed out after {GH_TIMEOUT_SECONDS}s") from None
        except (FileNotFoundError, subprocess.SubprocessError) as e:
            raise GitHubError(f"GitHub CLI error: {e}") from None

        if result.returncode != 0:
            raise GitHubError(f"GitHub CLI error: {result.stderr.strip()}")
        try:
            return json.loads(result.stdout or "[]")
        except json.JSONDecodeError:
            raise GitHubError("Invalid JSON from gh") from None

    def _client(self) -> httpx.Client:
        if self._http is None:
            self._http = httpx.Client(base_url=API_BASE_URL, timeout=API_TIMEOUT_SECONDS)
        return self._http

    def _request(self, endpoint: str, params: dict | None = None) -> Any:
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        try:
            response = self._client().get(endpoint, params=params, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise GitHubError(
                f"GitHub API error: {e.response.status_code} {e.response.reason_phrase}"
            ) from None
        except httpx.HTTPError as e:
            raise GitHubError(f"GitHub API request failed: {e}") from None
        return response.json()

    # --- queries ---

    def list_issues(self, state: str = "open") -> list[Issue]:
        """Issues (never pull requests) in the given state."""
        if self.method == METHOD_GH_CLI:
            data = self._gh([
                "issue", "list", "--repo", self.full_name,
                "--state", state, "--limit", str(LIST_LIMIT),
                "--json", "number,title,state,url,createdAt,updatedAt,author,labels,assignees,body",
            ])
            return [
                Issue(
                    number=i["number"],
                    title=i["title"],
                    state=i.get("state", "").lower(),
                    url=i.get("url", ""),
                    author=_login(i.get("author")),
                    created_at=i.get("createdAt", ""),
                    updated_at=i.get("updatedAt", ""),
                    body=i.get("body") or "",
                    labels=_label_names(i.get("labels")),
                    assignees=[_login(a) for a in i.get("assignees") or []],
                )
                for i in data
            ]

        data = self._request(
            f"/repos/{self.full_name}/issues",
            params={"state": state, "per_page": LIST_LIMIT},
        )
        return [
            Issue(
                number=i["number"],
                title=i["title"],
                state=i.get("state", ""),
                url=i.get("html_url", ""),
                author=_login(i.get("user")),
                created_at=i.get("created_at", ""),
                updated_at=i.get("updated_at", ""),
                body=i.get("body") or "",
                labels=_label_names(i.get("labels")),
                assignees=[_login(a) for a in i.get("assignees") or []],
            )
            for i in data
            # The issues endpoint also returns pull requests
            if "pull_request" not in i
        ]

    def list_open_issues(self) -> list[Issue]:
        return self.list_issues("open")

    def list_open_pull_requests(self) -> list[PullRequest]:
        if self.method == METHOD_GH_CLI:
            data = self._gh([
                "pr", "list", "--repo", self.full_name, "--limit", str(LIST_LIMIT),
                "--json", "number,title,state,url,createdAt,updatedAt,author,headRefName,baseRefName",
            ])
            return [
                PullRequest(
                    number=p["number"],
                    title=p["title"],
                    state=p.get("state", "").lower(),
                    url=p.get("url", ""),
                    author=_login(p.get("author")),
                    created_at=p.get("createdAt", ""),
                    updated_at=p.get("updatedAt", ""),
                    head_ref=p.get("headRefName", ""),
                    base_ref=p.get("baseRefName", ""),
                )
                for p in data
            ]

        data = self._request(
            f"/repos/{self.full_name}/pulls",
            params={"state": "open", "per_page": LIST_LIMIT},
        )
        return [
            PullRequest(
                number=p["number"],
                title=p["title"],
                state=p.get("state", ""),
                url=p.get("html_url", ""),
                author=_login(p.get("user")),
                created_at=p.get("created_at", ""),
                updated_at=p.get("updated_at", ""),
                head_ref=(p.get("head") or {}).get("ref", ""),
                base_ref=(p.get("base") or {}).get("ref", ""),
            )
            for p in data
        ]


def create_client(config: SaferConfig, http_client: httpx.Client | None = None) -> GitHubClient:
    """Build a client for the configured repository.

    Raises:
        ImporterNotConfigured: If the integration is disabled, the repository
            is unknown, or there are no usable credentials
    """
    gh_config = config.github
    if not gh_config.enabled:
        raise ImporterNotConfigured(
            "GitHub integration is not enabled. Enable it with: safer github --enable"
        )

    gh = check_gh_cli()
    if gh.available and gh.authenticated:
        if gh_config.owner and gh_config.repo:
            owner, repo = gh_config.owner, gh_config.repo
        elif gh.repo and "/" in gh.repo:
            owner, repo = gh.repo.split("/", 1)
        else:
            raise ImporterNotConfigured(
                "GitHub repository not configured and could not be detected"
            )
        logger.info(f"Using GitHub CLI for {owner}/{repo}")
        return GitHubClient(owner, repo, METHOD_GH_CLI)

    if not gh_config.token:
        raise ImporterNotConfigured(
            "GitHub CLI (gh) not available. Install it and run 'gh auth login', "
            "or set a token with: safer github --token <token>"
        )
    if not gh_config.owner or not gh_config.repo:
        raise ImporterNotConfigured("GitHub owner and repo must be configured when not using gh CLI")

    logger.info(f"Using token authentication for {gh_config.owner}/{gh_config.repo}")
    return GitHubClient(
        gh_config.owner, gh_config.repo, METHOD_TOKEN,
        token=gh_config.token, http_client=http_client,
    )


def get_status(config: SaferConfig) -> GitHubStatus:
    """Report which transport would be used, without raising."""
    gh_config = config.github
    configured_repo = f"{gh_config.owner}/{gh_config.repo}" if gh_config.owner and gh_config.repo else None

    if not gh_config.enabled:
        return GitHubStatus(False, METHOD_NONE, configured_repo, "GitHub integration is disabled")

    gh = check_gh_cli()
    if gh.available and gh.authenticated:
        repo = configured_repo or gh.repo
        message = "Using GitHub CLI (gh)"
        if not repo:
            message += "; repository not configured and could not be detected"
        return GitHubStatus(True, METHOD_GH_CLI, repo, message)

    if gh_config.token and configured_repo:
        return GitHubStatus(True, METHOD_TOKEN, configured_repo, "Using token-based authentication")

    if gh.available:
        message = "GitHub CLI not authenticated. Run: gh auth login"
    else:
        message = "GitHub CLI (gh) not installed and no token configured"
    return GitHubStatus(True, METHOD_NONE, configured_repo, message)
