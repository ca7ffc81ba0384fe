# tests/unit/test_cli.py
"""
CLI unit tests.

Tests each command via typer's CliRunner. The backend is an
httpx.MockTransport handler and local state uses the in-memory stores,
so nothing touches the network or the user's config directory.
"""

import asyncio
import itertools
import json
import re
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from typer.testing import CliRunner

from windspire_console.cli import app
from windspire_console.config.schema import WindspireConfig
from windspire_console.generation.marker import MARKER_KEY
from windspire_console.models.jobs import GenerationJob, GenerationRequest, JobState, Progress
from windspire_console.models.memory_store import InMemoryFlagStore, InMemoryJobLog
from windspire_console.service.client import ApiClient

runner = CliRunner()

_CONTENT_PATH = re.compile(r"^/api/content/([^/]+)(/rewrite)?$")


class FakeBackend:
    """Minimal catalog API: categories, content list, generate, patch, delete, rewrite."""

    def __init__(self, content=None, fail_generate=False):
        self.content = {raw["_id"]: raw for raw in content or []}
        self.deleted: list[tuple[str, dict]] = []
        self.fail_generate = fail_generate
        self._ids = itertools.count(1)

    def _ok(self, data):
        return httpx.Response(200, json={"status": "success", "data": data})

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/api/categories":
            return self._ok(
                {
                    "categories": [
                        {"_id": "cat-1", "name": "Money"},
                        {"_id": "cat-2", "name": "Food"},
                    ]
                }
            )
        if path == "/api/content/generate-multiple":
            if self.fail_generate:
                return httpx.Response(500, json={"status": "error", "message": "model down"})
            body = json.loads(request.content)
            raw = {"_id": f"gen-{next(self._ids)}", "title": "New hack", "category": body["categoryId"]}
            return self._ok({"content": [raw]})
        if path == "/api/content" and request.method == "GET":
            status = request.url.params.get("status")
            items = [r for r in self.content.values() if not status or r.get("status") == status]
            return self._ok({"content": items})

        match = _CONTENT_PATH.match(path)
        if match:
            item_id, rewrite = match.groups()
            if item_id not in self.content:
                return httpx.Response(404, json={"status": "error", "message": "Content not found"})
            if rewrite:
                raw = dict(self.content[item_id], title=f"Rewritten {item_id}")
                self.content[item_id] = raw
                return self._ok({"content": raw})
            if request.method == "PATCH":
                self.content[item_id].update(json.loads(request.content))
                return self._ok({"content": self.content[item_id]})
            if request.method == "DELETE":
                self.deleted.append((item_id, dict(request.url.params)))
                del self.content[item_id]
                return httpx.Response(204)
        return httpx.Response(404, json={"status": "error", "message": f"No route {path}"})


def _raw(item_id, title, **extra):
    return {"_id": item_id, "title": title, "body": f"Body {item_id}", "category": "cat-1", **extra}


@pytest.fixture
def backend():
    return FakeBackend(
        [
            _raw("1", "Save Money"),
            _raw("2", "SAVE MONEY"),
            _raw("3", "Unique tip"),
        ]
    )


@pytest.fixture
def state():
    return InMemoryFlagStore(), InMemoryJobLog()


@pytest.fixture
def cli_env(backend, state):
    """Patch config, API client, and local state for every command."""

    def make_api(config):
        return ApiClient("http://catalog.test/api", transport=httpx.MockTransport(backend.handler))

    with (
        patch("windspire_console.cli._get_config", return_value=WindspireConfig()),
        patch("windspire_console.cli._get_api", side_effect=make_api),
        patch("windspire_console.cli._get_state", AsyncMock(return_value=state)),
    ):
        yield backend, state


class TestHelp:
    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "Batch content generation" in result.output

    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("generate", "duplicates", "similar", "mark", "cleanup", "status", "history"):
            assert command in result.output


class TestGenerate:
    def test_generates_by_id_and_name(self, cli_env):
        backend, (flags, job_log) = cli_env

        result = runner.invoke(app, ["generate", "cat-1", "food", "--count", "1"])

        assert result.exit_code == 0, result.output
        assert "✓ Money: 1" in result.output
        assert "✓ Food: 1" in result.output
        assert "Generated 2 items across 2 categories." in result.output

    def test_count_out_of_range(self, cli_env):
        result = runner.invoke(app, ["generate", "cat-1", "--count", "99"])
        assert result.exit_code == 2
        assert "between 1 and 50" in result.output

    def test_zero_count_is_rejected(self, cli_env):
        result = runner.invoke(app, ["generate", "cat-1", "--count", "0"])
        assert result.exit_code == 2
        assert "between 1 and 50" in result.output
        assert "Generated" not in result.output

    def test_all_categories_failed_exits_nonzero(self, cli_env):
        backend, _ = cli_env
        backend.fail_generate = True

        result = runner.invoke(app, ["generate", "cat-1", "--count", "1"])

        assert result.exit_code == 1
        assert "✗ Money: model down" in result.output
        assert "Failed: 1 categories." in result.output

    def test_warns_about_previous_batch(self, cli_env):
        _, (flags, _) = cli_env
        flags._flags[MARKER_KEY] = "true"

        result = runner.invoke(app, ["generate", "cat-1", "--count", "1"])

        assert result.exit_code == 0
        assert "previous generation batch" in result.output


class TestDuplicates:
    def test_lists_groups(self, cli_env):
        result = runner.invoke(app, ["duplicates"])
        assert result.exit_code == 0
        assert "Save Money (2)" in result.output
        assert "1 duplicate group(s)." in result.output

    def test_no_duplicates(self, cli_env):
        result = runner.invoke(app, ["duplicates", "--status", "published"])
        assert result.exit_code == 0
        assert "No duplicates found." in result.output


class TestSimilar:
    def test_ranks_candidates(self, cli_env):
        result = runner.invoke(app, ["similar", "1"])
        assert result.exit_code == 0
        assert "SAVE MONEY" in result.output
        assert "Unique tip" not in result.output

    def test_unknown_item(self, cli_env):
        result = runner.invoke(app, ["similar", "nope"])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestMarkAndCleanup:
    def test_mark(self, cli_env):
        backend, _ = cli_env

        result = runner.invoke(app, ["mark"])

        assert result.exit_code == 0
        assert "Flagged 1 item(s)" in result.output
        assert backend.content["2"]["isDuplicate"] is True

    def test_cleanup_with_yes(self, cli_env):
        backend, _ = cli_env

        result = runner.invoke(app, ["cleanup", "--yes"])

        assert result.exit_code == 0
        assert "Processed duplicate content: kept 1, deleted 1" in result.output
        assert backend.deleted == [("2", {"reason": "duplicate", "duplicateOf": "1"})]

    def test_cleanup_aborts_without_confirmation(self, cli_env):
        backend, _ = cli_env

        result = runner.invoke(app, ["cleanup"], input="n\n")

        assert result.exit_code == 1
        assert backend.deleted == []


class TestResolveDeleteRewrite:
    def test_resolve_delete(self, cli_env):
        backend, _ = cli_env

        result = runner.invoke(app, ["resolve", "2", "--action", "delete"])

        assert result.exit_code == 0, result.output
        assert "Group resolved: 1 deleted, 0 failed" in result.output
        assert [d[0] for d in backend.deleted] == ["1"]

    def test_resolve_not_in_group(self, cli_env):
        result = runner.invoke(app, ["resolve", "3"])
        assert result.exit_code == 1
        assert "not part of a duplicate group" in result.output

    def test_delete_reports_failures(self, cli_env):
        result = runner.invoke(app, ["delete", "3", "missing"])
        assert result.exit_code == 1
        assert "Deleted 1 item(s)." in result.output
        assert "failed missing: Content not found" in result.output

    def test_rewrite(self, cli_env):
        result = runner.invoke(app, ["rewrite", "2", "--model", "gpt-4o"])
        assert result.exit_code == 0
        assert "Rewrote 2: Rewritten 2" in result.output


class TestStatusAndHistory:
    def test_status_idle(self, cli_env):
        result = runner.invoke(app, ["status"])
        assert result.exit_code == 0
        assert "No batch in progress." in result.output

    def test_status_clear(self, cli_env):
        _, (flags, _) = cli_env
        flags._flags[MARKER_KEY] = "true"

        result = runner.invoke(app, ["status"])
        assert "status --clear" in result.output
        assert flags._flags[MARKER_KEY] == "true"

        result = runner.invoke(app, ["status", "--clear"])
        assert "In-progress marker cleared." in result.output
        assert MARKER_KEY not in flags._flags

    def test_history(self, cli_env):
        _, (_, job_log) = cli_env
        job = GenerationJob("abc123def456", [GenerationRequest("cat-1", 1)], Progress(total=1))
        job.state = JobState.COMPLETE

        asyncio.run(job_log.record(job))
        result = runner.invoke(app, ["history"])

        assert result.exit_code == 0
        assert "abc123def456" in result.output
        assert "complete" in result.output

    def test_history_empty(self, cli_env):
        result = runner.invoke(app, ["history"])
        assert "No generation batches found." in result.output
