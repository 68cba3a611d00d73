# Tests for sitepub.output.console and sitepub.logger
# Rich-based console output

from io import StringIO

from rich.console import Console as RichConsole

from sitepub.errors import ConfigError
from sitepub.logger import PublishLogger
from sitepub.output.console import Console, create_console
from sitepub.publish.actions import ActionType, SyncAction
from sitepub.publish.apply import ActionResult
from sitepub.publish.orchestrator import PublishIssue, PublishResult, PublishState
from sitepub.publish.routing import ErrorRoute
from sitepub.storage.base import RemoteObject


def _make_console(verbose: bool = False) -> Console:
    """Create a console with captured output."""
    console = Console(verbose=verbose, colored=False)
    console._console = RichConsole(file=StringIO(), no_color=True, width=160)
    return console


def _get_output(console: Console) -> str:
    """Get captured output from console."""
    console._console.file.seek(0)
    return console._console.file.read()


class TestConsoleBasic:
    """Tests for basic console methods."""

    def test_print_error(self):
        """Test error output."""
        c = _make_console()
        c.print_error("something failed")
        output = _get_output(c)
        assert "Error:" in output
        assert "something failed" in output

    def test_print_warning(self):
        """Test warning output."""
        c = _make_console()
        c.print_warning("be careful")
        assert "Warning:" in _get_output(c)

    def test_print_success(self):
        """Test success output."""
        c = _make_console()
        c.print_success("all good")
        assert "all good" in _get_output(c)

    def test_create_console(self):
        """Test console factory."""
        c = create_console(verbose=True, colored=False)
        assert c.verbose
        assert c.rich is c._console


class TestPrintPlan:
    """Tests for print_plan."""

    def _actions(self):
        return [
            SyncAction(ActionType.CREATE, "img/logo.png", reason="New object"),
            SyncAction(ActionType.SKIP, "error.html", reason="Content identical"),
            SyncAction(ActionType.UPDATE, "index.html", reason="Fingerprint changed"),
        ]

    def test_hides_skips(self):
        """Test unchanged objects are hidden by default."""
        c = _make_console()
        c.print_plan(self._actions(), [])
        output = _get_output(c)
        assert "img/logo.png" in output
        assert "index.html" in output
        assert "error.html" not in output

    def test_verbose_shows_skips(self):
        """Test verbose mode lists unchanged objects."""
        c = _make_console(verbose=True)
        c.print_plan(self._actions(), [])
        assert "error.html" in _get_output(c)

    def test_prune_candidates(self):
        """Test orphaned objects are listed."""
        c = _make_console()
        c.print_plan([], [SyncAction(ActionType.PRUNE, "old/page.html", remote=RemoteObject("old/page.html"))])
        output = _get_output(c)
        assert "old/page.html" in output
        assert "not pruned" in output

    def test_no_changes(self):
        """Test the empty plan message."""
        c = _make_console()
        c.print_plan([SyncAction(ActionType.SKIP, "index.html")], [])
        assert "No changes" in _get_output(c)


class TestPrintPublishResult:
    """Tests for print_publish_result."""

    def test_success(self):
        """Test summary of a successful publish."""
        c = _make_console()
        result = PublishResult(state=PublishState.DONE, distribution_id="E123ABC", created=3, invalidation_id="I1")
        c.print_publish_result(result)
        output = _get_output(c)
        assert "Publish completed" in output
        assert "3 created" in output
        assert "E123ABC" in output
        assert "I1" in output

    def test_dry_run(self):
        """Test summary of a dry run."""
        c = _make_console()
        c.print_publish_result(PublishResult(state=PublishState.DONE, dry_run=True, created=2))
        output = _get_output(c)
        assert "Dry run completed" in output
        assert "would upload 2" in output

    def test_failure(self):
        """Test summary of a failed publish."""
        c = _make_console()
        result = PublishResult(
            state=PublishState.FAILED,
            error=ConfigError("route points at missing.html"),
            failures=[PublishIssue("applying", "AccessDenied", "ApplyError", key="index.html", attempts=3)],
        )
        c.print_publish_result(result)
        output = _get_output(c)
        assert "Publish failed" in output
        assert "missing.html" in output
        assert "index.html: AccessDenied (3 attempts)" in output


class TestPolicyAndRoutes:
    """Tests for policy and route rendering."""

    def test_print_policy(self):
        """Test policy document output."""
        c = _make_console()
        c.print_policy({"Version": "2012-10-17", "Statement": []})
        assert '"Version": "2012-10-17"' in _get_output(c)

    def test_print_routes(self):
        """Test error routes table."""
        c = _make_console()
        c.print_routes([ErrorRoute(404, "error.html", cache_ttl=30)])
        output = _get_output(c)
        assert "404" in output
        assert "/error.html" in output
        assert "30s" in output


class TestPublishLogger:
    """Tests for PublishLogger."""

    def _logger(self, verbose: bool = False) -> tuple[PublishLogger, StringIO]:
        buffer = StringIO()
        return PublishLogger(RichConsole(file=buffer, no_color=True, width=160), verbose=verbose), buffer

    def test_messages(self):
        """Test logger message levels."""
        logger, buffer = self._logger()
        logger.info("starting")
        logger.success("done")
        logger.warning("careful")
        logger.error("broken")
        output = buffer.getvalue()
        for word in ("starting", "done", "careful", "broken"):
            assert word in output

    def test_debug_only_when_verbose(self):
        """Test debug and state lines only in verbose mode."""
        quiet, quiet_buffer = self._logger()
        quiet.debug("details")
        quiet.state(PublishState.SCANNING)
        assert quiet_buffer.getvalue() == ""

        loud, loud_buffer = self._logger(verbose=True)
        loud.debug("details")
        loud.state(PublishState.SCANNING)
        assert "details" in loud_buffer.getvalue()
        assert "scanning" in loud_buffer.getvalue()

    def test_upload_lines(self):
        """Test upload result lines."""
        logger, buffer = self._logger()
        action = SyncAction(ActionType.CREATE, "index.html")
        logger.upload(ActionResult(action=action, success=True, attempts=1))
        logger.upload(ActionResult(action=action, success=False, error="AccessDenied"))
        logger.upload(ActionResult(action=action, success=False, cancelled=True))
        output = buffer.getvalue()
        assert "+ index.html" in output
        assert "AccessDenied" in output
        assert "cancelled" in output
