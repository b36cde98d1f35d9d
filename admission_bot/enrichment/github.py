"""GitHub repository references: file/directory contents and repo analysis."""

from __future__ import annotations

import asyncio
import json
import logging
import re
import tomllib
from dataclasses import dataclass
from typing import Any

from github import Auth, Github, GithubException

from admission_bot.config import settings
from admission_bot.enrichment.base import FetchResult

logger = logging.getLogger(__name__)

MAX_FILE_CHARS = 2000
MAX_DIR_ENTRIES = 10
MAX_README_CHARS = 500
MAX_MANIFEST_SCRIPTS = 3

REPO_URL_RE = re.compile(
    r"(?:https?://)?(?:www\.)?github\.com/"
    r"(?P<owner>[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?)/"
    r"(?P<repo>[A-Za-z0-9_.-]+)"
    r"(?:/(?:blob|tree)/(?P<ref>[^/\s?#]+))?"
    r"(?:/(?P<path>[^\s?#]+))?",
    re.IGNORECASE,
)

TEST_NAMES = {"test", "tests", "__tests__", "spec", "specs", "testing", "conftest.py",
              "pytest.ini", "tox.ini", "jest.config.js", "jest.config.ts", "vitest.config.ts"}
DOCS_NAMES = {"docs", "doc", "documentation", "mkdocs.yml", "book.toml"}
CI_NAMES = {".github", ".gitlab-ci.yml", ".travis.yml", ".circleci", "jenkinsfile",
            "azure-pipelines.yml", ".drone.yml", "bitbucket-pipelines.yml", "appveyor.yml"}

_github_client: Github | None = None


@dataclass(frozen=True)
class RepoReference:
    owner: str
    repo: str
    ref: str | None = None
    path: str = ""

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"


def parse_repo_reference(text: str) -> RepoReference | None:
    """Find the first GitHub repository link in *text*."""
    match = REPO_URL_RE.search(text)
    if match is None:
        return None
    repo = match["repo"].rstrip(".,;:!")
    if repo.endswith(".git"):
        repo = repo[:-4]
    if not repo:
        return None
    path = (match["path"] or "").strip("/").rstrip(".,;:!)")
    return RepoReference(owner=match["owner"], repo=repo, ref=match["ref"], path=path)


def _get_github() -> Github:
    """Lazily create and cache a PyGithub client (anonymous without a token)."""
    global _github_client  # noqa: PLW0603
    if _github_client is None:
        if settings.github_token:
            _github_client = Github(
                auth=Auth.Token(settings.github_token), timeout=int(settings.fetch_timeout)
            )
        else:
            logger.info("GITHUB_TOKEN not set, using anonymous GitHub access")
            _github_client = Github(timeout=int(settings.fetch_timeout))
    return _github_client


def _github_error_message(exc: GithubException) -> str:
    """Extract a human-readable message from a GithubException."""
    if exc.data and isinstance(exc.data, dict):
        return exc.data.get("message", str(exc))
    return str(exc)


def _decode(content_file) -> str:  # noqa: ANN001
    return content_file.decoded_content.decode("utf-8", errors="replace")


# ---------------------------------------------------------------------------
# Sub-path contents
# ---------------------------------------------------------------------------


def _read_contents(ref: RepoReference) -> dict[str, Any]:
    gh = _get_github()
    repo = gh.get_repo(ref.slug)
    kwargs: dict[str, Any] = {"path": ref.path}
    if ref.ref:
        kwargs["ref"] = ref.ref
    contents = repo.get_contents(**kwargs)

    # get_contents returns a single item for files, list for directories
    if isinstance(contents, list):
        entries = [
            {"name": c.name, "type": "dir" if c.type == "dir" else "file"}
            for c in contents[:MAX_DIR_ENTRIES]
        ]
        return {"kind": "dir", "path": ref.path, "entries": entries, "total": len(contents)}

    text = _decode(contents)
    truncated = len(text) > MAX_FILE_CHARS
    if truncated:
        text = text[:MAX_FILE_CHARS] + "..."
    return {"kind": "file", "path": ref.path, "content": text, "truncated": truncated}


async def fetch_contents(ref: RepoReference) -> FetchResult:
    """Fetch a file or directory listing at the reference's sub-path."""
    try:
        data = await asyncio.to_thread(_read_contents, ref)
    except GithubException as exc:
        logger.warning("GitHub contents fetch failed for %s/%s: %s", ref.slug, ref.path, exc)
        return FetchResult(error=_github_error_message(exc))
    except OSError as exc:
        logger.warning("GitHub contents fetch failed for %s/%s: %s", ref.slug, ref.path, exc)
        return FetchResult(error=f"Request failed: {exc}")
    data["repo"] = ref.slug
    return FetchResult(data=data)


def render_contents(data: dict[str, Any]) -> str:
    if data["kind"] == "dir":
        lines = [f"Directory {data['path'] or '/'} in {data['repo']}:"]
        for entry in data["entries"]:
            icon = "📁" if entry["type"] == "dir" else "📄"
            lines.append(f"{icon} {entry['name']} ({entry['type']})")
        if data["total"] > len(data["entries"]):
            lines.append(f"... and {data['total'] - len(data['entries'])} more")
        return "\n".join(lines)
    return f"File {data['path']} in {data['repo']}:\n{data['content']}"


# ---------------------------------------------------------------------------
# Repository analysis
# ---------------------------------------------------------------------------


def _read_metadata(slug: str) -> dict[str, Any]:
    r = _get_github().get_repo(slug)
    return {
        "full_name": r.full_name,
        "description": r.description or "",
        "language": r.language or "",
        "stars": r.stargazers_count,
        "forks": r.forks_count,
        "size_kb": r.size,
        "topics": list(r.topics or []),
        "license": r.license.name if r.license else "",
        "url": r.html_url,
        "created_at": r.created_at.date().isoformat() if r.created_at else "",
        "updated_at": r.updated_at.date().isoformat() if r.updated_at else "",
    }


def _parse_manifest(name: str, raw: str) -> dict[str, Any]:
    """Extract the project name and a few script names from a manifest."""
    if name == "package.json":
        data = json.loads(raw)
        scripts = data.get("scripts") or {}
        return {"file": name, "name": data.get("name", ""), "scripts": list(scripts)[:MAX_MANIFEST_SCRIPTS]}

    data = tomllib.loads(raw)
    project = data.get("project") or data.get("tool", {}).get("poetry") or {}
    scripts = project.get("scripts") or {}
    return {"file": name, "name": project.get("name", ""), "scripts": list(scripts)[:MAX_MANIFEST_SCRIPTS]}


def _read_structure(slug: str) -> dict[str, Any]:
    repo = _get_github().get_repo(slug)
    root = repo.get_contents("")
    if not isinstance(root, list):
        root = [root]
    by_name = {c.name.lower(): c for c in root}

    structure: dict[str, Any] = {
        "has_readme": any(n.startswith("readme") for n in by_name),
        "has_tests": any(n in TEST_NAMES or n.startswith("test_") for n in by_name),
        "has_docs": any(n in DOCS_NAMES for n in by_name),
        "has_ci": any(n in CI_NAMES for n in by_name),
        "has_license_file": any(n.startswith(("license", "licence", "copying")) for n in by_name),
        "readme": "",
        "manifest": None,
    }

    if structure["has_readme"]:
        readme = _decode(repo.get_readme())
        structure["readme"] = readme[:MAX_README_CHARS] + ("..." if len(readme) > MAX_README_CHARS else "")

    for manifest_name in ("package.json", "pyproject.toml"):
        if manifest_name in by_name:
            try:
                structure["manifest"] = _parse_manifest(manifest_name, _decode(by_name[manifest_name]))
            except (ValueError, tomllib.TOMLDecodeError):
                logger.warning("Could not parse %s in %s", manifest_name, slug)
                structure["manifest"] = {"file": manifest_name, "name": "", "scripts": []}
            break

    return structure


async def _structure_best_effort(slug: str) -> dict[str, Any] | None:
    try:
        return await asyncio.to_thread(_read_structure, slug)
    except (GithubException, OSError) as exc:
        logger.warning("Structure analysis failed for %s: %s", slug, exc)
        return None


async def analyze_repository(slug: str) -> FetchResult:
    """Fetch metadata and structure concurrently.

    Metadata is required; the structure analysis is best-effort and is
    reported as ``None`` when it fails.
    """
    metadata_task = asyncio.to_thread(_read_metadata, slug)
    structure_task = _structure_best_effort(slug)
    try:
        metadata, structure = await asyncio.gather(metadata_task, structure_task)
    except GithubException as exc:
        logger.warning("GitHub metadata fetch failed for %s: %s", slug, exc)
        return FetchResult(error=_github_error_message(exc))
    except OSError as exc:
        logger.warning("GitHub metadata fetch failed for %s: %s", slug, exc)
        return FetchResult(error=f"Request failed: {exc}")
    return FetchResult(data={"metadata": metadata, "structure": structure})


def recommendations(metadata: dict[str, Any], structure: dict[str, Any]) -> list[str]:
    """Actionable suggestions, one per missing item."""
    recs = []
    if not structure["has_readme"]:
        recs.append("Add a README describing the project, setup and usage.")
    if not structure["has_tests"]:
        recs.append("Add automated tests.")
    if not structure["has_docs"]:
        recs.append("Add documentation (a docs/ directory or a docs site).")
    if not structure["has_ci"]:
        recs.append("Set up continuous integration (e.g. GitHub Actions).")
    if not metadata["license"] and not structure["has_license_file"]:
        recs.append("Add a license so others know how they may use the code.")
    return recs


def render_report(data: dict[str, Any]) -> str:
    meta = data["metadata"]
    structure = data["structure"]

    def yes_no(flag: bool) -> str:
        return "yes" if flag else "no"

    lines = [
        f"Repository: {meta['full_name']}",
        f"URL: {meta['url']}",
        f"Description: {meta['description'] or '(none)'}",
        f"Language: {meta['language'] or 'unknown'}",
        f"Stars: {meta['stars']} | Forks: {meta['forks']} | Size: {meta['size_kb']} KB",
    ]
    if meta["topics"]:
        lines.append(f"Topics: {', '.join(meta['topics'])}")
    lines.append(f"License: {meta['license'] or 'none'}")
    lines.append(f"Created: {meta['created_at']} | Updated: {meta['updated_at']}")

    if structure is None:
        lines += ["", "Structure analysis unavailable."]
        return "\n".join(lines)

    lines += [
        "",
        "Structure:",
        f"- README: {yes_no(structure['has_readme'])}",
        f"- Tests: {yes_no(structure['has_tests'])}",
        f"- Docs: {yes_no(structure['has_docs'])}",
        f"- CI: {yes_no(structure['has_ci'])}",
    ]
    manifest = structure["manifest"]
    if manifest:
        desc = manifest["file"]
        if manifest["name"]:
            desc += f" (name: {manifest['name']})"
        if manifest["scripts"]:
            desc += f", scripts: {', '.join(manifest['scripts'])}"
        lines.append(f"- Package manifest: {desc}")

    if structure["readme"]:
        lines += ["", "README excerpt:", structure["readme"]]

    recs = recommendations(meta, structure)
    lines += ["", "Recommendations:"]
    if recs:
        lines.extend(f"- {r}" for r in recs)
    else:
        lines.append("- The repository already has a README, tests, docs, CI and a license.")
    return "\n".join(lines)
