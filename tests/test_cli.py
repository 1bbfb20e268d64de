"""End-to-end tests for the super-reaper CLI."""
import pytest
from typer.testing import CliRunner

from superreaper import main
from superreaper.config import __version__
from superreaper.reaper.safe_delete import SafeDeleter
from superreaper.utils.safe_console import SafeConsole

from conftest import CLASS_PREAMBLE

FORWARD = """
/** @override */
ns.Dog.prototype.bark = function(a, b) {
  ns.Dog.superClass_.bark.call(this, a, b);
};
"""

runner = CliRunner()


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Avoid table wrapping so names can be asserted on."""
    monkeypatch.setattr(main, "console", SafeConsole(width=200))


@pytest.fixture
def project(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "base.js").write_text(CLASS_PREAMBLE, encoding="utf-8")
    (tmp_path / "src" / "dog.js").write_text(FORWARD, encoding="utf-8")
    return tmp_path


def invoke(*args):
    return runner.invoke(main.app, [str(a) for a in args])


class TestAudit:

    def test_lists_removable_methods(self, project):
        result = invoke("audit", project)

        assert result.exit_code == 0, result.output
        assert "ns.Dog.prototype.bark" in result.output
        # Audit never writes
        assert (project / "src" / "dog.js").read_text(encoding="utf-8") == FORWARD

    def test_vendored_files_are_skipped(self, project):
        vendor = project / "node_modules" / "lib"
        vendor.mkdir(parents=True)
        (vendor / "broken.js").write_text("this is not javascript", encoding="utf-8")

        result = invoke("audit", project)

        assert result.exit_code == 0
        assert "Unparsable" not in result.output

    def test_cross_file_duplicate_is_kept(self, project):
        (project / "src" / "dog2.js").write_text(
            "ns.Dog.prototype.bark = function(a, b) { log(a, b); };\n", encoding="utf-8"
        )

        result = invoke("audit", project)

        assert result.exit_code == 0
        assert "No removable super methods found" in result.output

    def test_exclude_tag_option(self, project):
        (project / "src" / "dog.js").write_text(FORWARD.replace("@override", "@keep"), encoding="utf-8")

        result = invoke("audit", project, "--exclude-tag", "keep")

        assert "No removable super methods found" in result.output

    def test_parse_errors_are_listed(self, project):
        (project / "src" / "broken.js").write_text("var = ;\n", encoding="utf-8")

        result = invoke("audit", project)

        assert result.exit_code == 0
        assert "broken.js" in result.output
        assert "ns.Dog.prototype.bark" in result.output

    def test_missing_path(self, tmp_path):
        result = invoke("audit", tmp_path / "missing")

        assert result.exit_code == 1
        assert "does not exist" in result.output


class TestClean:

    def test_dry_run_changes_nothing(self, project):
        result = invoke("clean", project, "--dry-run")

        assert result.exit_code == 0
        assert "DRY RUN" in result.output
        assert (project / "src" / "dog.js").read_text(encoding="utf-8") == FORWARD

    def test_clean_rewrites_and_backs_up(self, project):
        result = invoke("clean", project, "--yes")

        assert result.exit_code == 0, result.output
        assert (project / "src" / "dog.js").read_text(encoding="utf-8") == "\n"
        assert (project / "src" / "base.js").read_text(encoding="utf-8") == CLASS_PREAMBLE

        backups = SafeDeleter(project / ".reaper_trash").list_backups()
        assert len(backups) == 1
        assert backups[0]["removed_methods"][0]["qualified_name"] == "ns.Dog.prototype.bark"
        assert backups[0]["id"] in result.output

    def test_declined_confirmation(self, project):
        result = runner.invoke(main.app, ["clean", str(project)], input="n\n")

        assert "Aborted" in result.output
        assert (project / "src" / "dog.js").read_text(encoding="utf-8") == FORWARD

    def test_refuses_partial_program(self, project):
        (project / "src" / "broken.js").write_text("var = ;\n", encoding="utf-8")

        result = invoke("clean", project, "--yes")

        assert result.exit_code == 1
        assert "--skip-unparsable" in result.output
        assert (project / "src" / "dog.js").read_text(encoding="utf-8") == FORWARD

    def test_skip_unparsable(self, project):
        (project / "src" / "broken.js").write_text("var = ;\n", encoding="utf-8")

        result = invoke("clean", project, "--yes", "--skip-unparsable")

        assert result.exit_code == 0
        assert (project / "src" / "dog.js").read_text(encoding="utf-8") == "\n"


class TestRestore:

    def test_clean_then_restore(self, project):
        invoke("clean", project, "--yes")
        backup_id = SafeDeleter(project / ".reaper_trash").list_backups()[0]["id"]

        result = invoke("restore", backup_id, project)

        assert result.exit_code == 0, result.output
        assert (project / "src" / "dog.js").read_text(encoding="utf-8") == FORWARD

    def test_custom_trash_dir_is_not_scanned(self, project, monkeypatch):
        monkeypatch.setenv("REAPER_TRASH_DIR", "backups")
        first = invoke("clean", project, "--yes")
        assert first.exit_code == 0, first.output
        backup = SafeDeleter(project / "backups").list_backups()[0]

        second = invoke("clean", project, "--yes")

        assert second.exit_code == 0, second.output
        assert "Project is clean" in second.output
        assert len(SafeDeleter(project / "backups").list_backups()) == 1
        with open(backup["backup_path"], encoding="utf-8") as f:
            assert f.read() == FORWARD, "backup copy must not be rewritten"

        result = invoke("restore", backup["id"], project)
        assert result.exit_code == 0, result.output
        assert (project / "src" / "dog.js").read_text(encoding="utf-8") == FORWARD

    def test_unknown_backup(self, project):
        result = invoke("restore", "nope", project)

        assert result.exit_code == 1
        assert "not found" in result.output


class TestGlobalOptions:

    def test_version(self):
        result = invoke("--version")

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_invalid_log_level(self, project, monkeypatch):
        monkeypatch.setenv("REAPER_LOG_LEVEL", "LOUD")

        result = invoke("audit", project)

        assert result.exit_code == 1
        assert "REAPER_LOG_LEVEL" in result.output

    def test_verbose(self, project):
        result = invoke("--verbose", "audit", project)

        assert result.exit_code == 0
