"""Tests for taskflow.commands.

Every test runs against the on-disk project from conftest. Git is mocked;
validation commands really run through the shell.

Nothing here covers two taskflow processes working on the same project at
once: the store has no cross-process locking, so concurrent invocations are
unsupported.
"""

from argparse import Namespace
from unittest.mock import MagicMock, patch

import pytest

from taskflow.commands.abort import cmd_abort
from taskflow.commands.back import cmd_back
from taskflow.commands.check import MANUAL_ANALYSIS, cmd_check
from taskflow.commands.commit import cmd_commit
from taskflow.commands.deps import cmd_deps
from taskflow.commands.do import cmd_do
from taskflow.commands.find import cmd_find
from taskflow.commands.history import cmd_history
from taskflow.commands.hold import cmd_hold
from taskflow.commands.next import cmd_next
from taskflow.commands.note import cmd_note
from taskflow.commands.resume import cmd_resume
from taskflow.commands.retro import cmd_retro_add, cmd_retro_list
from taskflow.commands.skip import cmd_skip
from taskflow.commands.start import cmd_start
from taskflow.commands.status import cmd_status
from taskflow.commands.subtask import cmd_subtask
from taskflow.git.log import CommitInfo
from taskflow.git.runner import GitResult
from taskflow.lib import retrospective, store
from taskflow.lib.errors import (
    ActiveTaskExistsError,
    CommitError,
    DependencyNotSatisfiedError,
    GitOperationError,
    InvalidWorkflowStateError,
    LLMError,
    NoActiveSessionError,
    TaskAlreadyCompletedError,
)
from taskflow.runner import validation
from taskflow.workflow.state_machine import InvalidTransition
from conftest import read_task, set_task_status, task_file, write_json

FAILING_TSC = "echo 'src/app.ts:10:5 - error TS2322: Type string is not assignable'; exit 1"


def status_of(project, task_id):
    return read_task(project, task_id)["status"]


def active_ids(paths):
    """Every task whose document is in an active status."""
    progress = store.load_progress(paths.tasks_dir)
    ids = []
    for location in store.iter_task_refs(progress):
        task = store.load_task(paths.tasks_dir, progress, location.task.id)
        if task.is_active:
            ids.append(task.id)
    return ids


def write_plan(paths, task_id="1.1.1"):
    plan = paths.plans_dir / f"T{task_id}-plan.md"
    plan.parent.mkdir(parents=True, exist_ok=True)
    plan.write_text("# Plan\n\n1. Build the form\n")
    return plan


@pytest.fixture(autouse=True)
def no_branch_switch():
    with patch("taskflow.commands.start.ensure_branch", return_value=False) as mock:
        yield mock


def start(ctx, task_id="1.1.1"):
    return cmd_start(Namespace(task_id=task_id), ctx)


def check(ctx):
    return cmd_check(Namespace(), ctx)


class TestWorkflow:
    def test_full_walk_to_committing(self, project, paths, ctx):
        """start, then check through every status, with the plan gate in planning."""
        result = start(ctx)
        assert result.success
        assert "Started task 1.1.1 - status: SETUP" in result.output
        assert status_of(project, "1.1.1") == "setup"

        result = check(ctx)
        assert result.success
        assert status_of(project, "1.1.1") == "planning"

        result = check(ctx)
        assert not result.success
        assert "stays in PLANNING: missing plan artifact .taskflow/plans/T1.1.1-plan.md" in result.output
        assert result.next_steps
        assert status_of(project, "1.1.1") == "planning"

        write_plan(paths)
        for expected in ("implementing", "verifying", "validating"):
            assert check(ctx).success
            assert status_of(project, "1.1.1") == expected

        result = check(ctx)
        assert result.success
        assert "All validations passed. Status: COMMITTING" in result.output
        assert status_of(project, "1.1.1") == "committing"

        last = validation.get_last_validation_status(paths.logs_dir, "1.1.1")
        assert last.passed

    def test_start_switches_to_story_branch(self, ctx, no_branch_switch):
        start(ctx)
        no_branch_switch.assert_called_once_with(ctx.root, "story/S1.1-user-login", "main")

    def test_branch_failure_leaves_task_untouched(self, project, ctx, no_branch_switch):
        no_branch_switch.side_effect = GitOperationError("checkout", "conflict")
        with pytest.raises(GitOperationError):
            start(ctx)
        assert status_of(project, "1.1.1") == "not-started"

    def test_start_again_is_a_no_op(self, project, ctx):
        start(ctx)
        result = start(ctx)
        assert result.success
        assert "already active" in result.output
        assert status_of(project, "1.1.1") == "setup"

    def test_check_in_committing(self, project, ctx):
        set_task_status(project, "1.1.1", "committing")
        result = check(ctx)
        assert not result.success
        assert any("taskflow commit" in step for step in result.next_steps)

    def test_check_without_active_task(self, ctx):
        with pytest.raises(NoActiveSessionError):
            check(ctx)


class TestStartPreconditions:
    def test_only_one_active_task(self, project, paths, ctx):
        """A second start is refused and neither task changes."""
        start(ctx, "1.1.1")

        with pytest.raises(ActiveTaskExistsError) as exc:
            start(ctx, "1.2.1")

        assert exc.value.active_id == "1.1.1"
        assert status_of(project, "1.1.1") == "setup"
        assert status_of(project, "1.2.1") == "not-started"
        assert active_ids(paths) == ["1.1.1"]

    def test_at_most_one_active_through_any_sequence(self, paths, ctx):
        operations = [
            lambda: start(ctx, "1.1.1"),
            lambda: start(ctx, "1.2.1"),
            lambda: cmd_hold(Namespace(reason=[]), ctx),
            lambda: start(ctx, "1.2.1"),
            lambda: cmd_resume(Namespace(status=None, task="1.1.1"), ctx),
            lambda: cmd_abort(Namespace(), ctx),
            lambda: cmd_resume(Namespace(status=None, task="1.1.1"), ctx),
            lambda: start(ctx, "1.1.1"),
        ]
        for operation in operations:
            try:
                operation()
            except (ActiveTaskExistsError, NoActiveSessionError, InvalidTransition):
                pass
            assert len(active_ids(paths)) <= 1

    def test_unmet_dependencies(self, project, ctx):
        with pytest.raises(DependencyNotSatisfiedError) as exc:
            start(ctx, "1.1.2")
        assert exc.value.unmet == ["1.1.1"]
        assert status_of(project, "1.1.2") == "not-started"

    def test_completed_task(self, project, ctx):
        set_task_status(project, "1.1.1", "completed")
        with pytest.raises(TaskAlreadyCompletedError):
            start(ctx, "1.1.1")

    def test_parked_task_points_to_resume(self, project, ctx):
        set_task_status(project, "1.1.1", "on-hold", previousStatus="planning")
        result = start(ctx, "1.1.1")
        assert not result.success
        assert result.next_steps == ["taskflow resume --task 1.1.1  # pick it back up where it stopped"]


class TestGuidance:
    def test_manual_guidance_without_llm(self, ctx):
        result = start(ctx)
        assert result.ai_guidance == ""
        assert "SETUP" in result.output

    def test_llm_guidance(self, ctx):
        ctx.llm = MagicMock()
        ctx.llm.ask.return_value = "1. Start with the form component"
        result = start(ctx)
        assert result.ai_guidance == "1. Start with the form component"
        prompt = ctx.llm.ask.call_args[0][0]
        assert "task 1.1.1: Login form" in prompt

    def test_llm_failure_falls_back(self, project, ctx):
        ctx.llm = MagicMock()
        ctx.llm.ask.side_effect = LLMError("timed out")
        result = start(ctx)
        assert result.success
        assert result.ai_guidance == ""
        assert status_of(project, "1.1.1") == "setup"

    def test_reference_files_listed(self, paths, ctx):
        paths.ref_dir.mkdir(parents=True)
        (paths.ref_dir / "coding-standards.md").write_text("# Standards\n")
        result = start(ctx)
        assert result.context_files == [".taskflow/ref/coding-standards.md"]


class TestValidationGate:
    @pytest.fixture
    def validating(self, project, ctx):
        set_task_status(project, "1.1.1", "validating")
        ctx.config.validation.commands = {"lint": "true", "typecheck": FAILING_TSC}
        return ctx

    def test_failure_holds_task(self, project, validating):
        result = check(validating)

        assert not result.success
        assert status_of(project, "1.1.1") == "validating"
        assert result.errors == ["typecheck failed"]
        assert "--- TYPECHECK ---" in result.output
        assert MANUAL_ANALYSIS in result.output
        assert "taskflow check  # re-run validation" in result.next_steps

    def test_failure_records_new_pattern(self, paths, validating):
        result = check(validating)

        entries = retrospective.load(paths.retrospective_path)
        assert [(e.pattern, e.category) for e in entries] == [("TS2322", "Type Error")]
        assert any("New error pattern recorded as #1" in w for w in result.warnings)

    def test_known_pattern_counted_on_repeat(self, paths, validating):
        check(validating)
        result = check(validating)

        entries = retrospective.load(paths.retrospective_path)
        assert len(entries) == 1
        assert entries[0].count == 2
        assert any(w.startswith("Known error #1") for w in result.warnings)

    def test_failure_writes_logs(self, paths, validating):
        result = check(validating)
        log_steps = [s for s in result.next_steps if s.startswith("Full log for typecheck")]
        assert len(log_steps) == 1
        last = validation.get_last_validation_status(paths.logs_dir, "1.1.1")
        assert last.failed_checks == ["typecheck"]

    def test_llm_error_analysis(self, validating):
        validating.llm = MagicMock()
        validating.llm.ask.return_value = "Fix the type of the prop"
        result = check(validating)
        assert result.ai_guidance == "Fix the type of the prop"
        assert MANUAL_ANALYSIS not in result.output
        assert "TS2322" in validating.llm.ask.call_args[0][0]

    def test_no_commands_configured_passes(self, project, validating):
        validating.config.validation.commands = {"lint": None}
        result = check(validating)
        assert result.success
        assert "No validation commands configured." in result.output
        assert status_of(project, "1.1.1") == "committing"


class TestParking:
    def test_skip_requires_reason(self, project, ctx):
        start(ctx)
        result = cmd_skip(Namespace(reason=[]), ctx)
        assert not result.success
        assert status_of(project, "1.1.1") == "setup"

    def test_skip_then_resume(self, project, ctx):
        set_task_status(project, "1.1.1", "verifying")

        result = cmd_skip(Namespace(reason=["API", "is", "down"]), ctx)
        assert result.success
        data = read_task(project, "1.1.1")
        assert data["status"] == "blocked"
        assert data["blockedReason"] == "API is down"
        assert data["previousStatus"] == "verifying"
        assert result.next_steps[0].startswith("taskflow start 1.2.1")

        result = cmd_resume(Namespace(status=None, task=None), ctx)
        assert result.success
        data = read_task(project, "1.1.1")
        assert data["status"] == "verifying"
        assert "blockedReason" not in data
        assert "previousStatus" not in data

    def test_hold_frees_the_active_slot(self, project, ctx):
        start(ctx, "1.1.1")
        cmd_hold(Namespace(reason=["lunch"]), ctx)
        assert status_of(project, "1.1.1") == "on-hold"

        assert start(ctx, "1.2.1").success
        with pytest.raises(ActiveTaskExistsError):
            cmd_resume(Namespace(status=None, task="1.1.1"), ctx)

    def test_resume_into_explicit_status(self, project, ctx):
        set_task_status(project, "1.1.1", "blocked", previousStatus="verifying", blockedReason="x")
        cmd_resume(Namespace(status="validating", task="1.1.1"), ctx)
        assert status_of(project, "1.1.1") == "validating"

    def test_resume_defaults_to_implementing(self, project, ctx):
        set_task_status(project, "1.1.1", "on-hold")
        cmd_resume(Namespace(status=None, task=None), ctx)
        assert status_of(project, "1.1.1") == "implementing"

    def test_resume_rejects_inactive_status(self, project, ctx):
        set_task_status(project, "1.1.1", "blocked", previousStatus="setup", blockedReason="x")
        result = cmd_resume(Namespace(status="completed", task="1.1.1"), ctx)
        assert not result.success
        assert status_of(project, "1.1.1") == "blocked"

    def test_resume_needs_task_when_several_parked(self, project, ctx):
        set_task_status(project, "1.1.1", "blocked", previousStatus="setup", blockedReason="x")
        set_task_status(project, "1.2.1", "on-hold", previousStatus="planning")
        result = cmd_resume(Namespace(status=None, task=None), ctx)
        assert not result.success
        assert "1.1.1, 1.2.1" in result.output

    def test_resume_nothing_parked(self, ctx):
        with pytest.raises(NoActiveSessionError):
            cmd_resume(Namespace(status=None, task=None), ctx)

    def test_resume_task_that_is_not_parked(self, ctx):
        result = cmd_resume(Namespace(status=None, task="1.2.1"), ctx)
        assert not result.success
        assert result.next_steps == ["taskflow start 1.2.1  # begin the task"]

    def test_abort(self, project, paths, ctx):
        set_task_status(project, "1.1.1", "implementing")
        result = cmd_abort(Namespace(), ctx)
        assert result.success
        assert status_of(project, "1.1.1") == "not-started"
        assert active_ids(paths) == []


class TestBack:
    def test_steps_back_one_state(self, project, ctx):
        set_task_status(project, "1.1.1", "implementing")
        result = cmd_back(Namespace(), ctx)
        assert result.success
        assert "Task 1.1.1: implementing -> planning" in result.output
        assert status_of(project, "1.1.1") == "planning"

    def test_walks_back_to_setup(self, project, ctx):
        set_task_status(project, "1.1.1", "committing")
        for expected in ("validating", "verifying", "implementing", "planning", "setup"):
            assert cmd_back(Namespace(), ctx).success
            assert status_of(project, "1.1.1") == expected

    def test_setup_is_the_earliest_state(self, project, ctx):
        start(ctx)
        result = cmd_back(Namespace(), ctx)
        assert not result.success
        assert "already at its earliest state: setup" in result.output
        assert result.next_steps
        assert status_of(project, "1.1.1") == "setup"

    def test_without_active_task(self, ctx):
        with pytest.raises(NoActiveSessionError):
            cmd_back(Namespace(), ctx)


class TestCommit:
    @pytest.fixture
    def git(self, project):
        set_task_status(project, "1.1.1", "committing")
        mocks = dict(
            is_git_repo=MagicMock(return_value=True),
            has_uncommitted_changes=MagicMock(return_value=True),
            stage_all=MagicMock(return_value=GitResult(0, "", "")),
            commit=MagicMock(return_value=GitResult(0, "", "")),
            has_remote=MagicMock(return_value=False),
            has_upstream=MagicMock(return_value=True),
            push=MagicMock(return_value=GitResult(0, "", "")),
            push_set_upstream=MagicMock(return_value=GitResult(0, "", "")),
            get_current_branch=MagicMock(return_value="story/S1.1-user-login"),
        )
        with patch.multiple("taskflow.git", **mocks):
            yield Namespace(**mocks)

    def commit(self, ctx, text="- Added form\\n- Wired submit"):
        return cmd_commit(Namespace(message=[text]), ctx)

    def test_commit_completes_task(self, project, ctx, git):
        result = self.commit(ctx)

        assert result.success
        assert status_of(project, "1.1.1") == "completed"
        message = git.commit.call_args[0][1]
        assert message.startswith("feat(F1): T1.1.1 - Login form\n\n- Added form\n- Wired submit")
        assert message.endswith("Story: S1.1")
        assert "No remote configured" in result.output
        assert result.next_steps == ["taskflow start 1.1.2"]

    def test_pushes_with_upstream(self, ctx, git):
        git.has_remote.return_value = True
        self.commit(ctx)
        git.push.assert_called_once()
        git.push_set_upstream.assert_not_called()

    def test_sets_upstream_on_first_push(self, ctx, git):
        git.has_remote.return_value = True
        git.has_upstream.return_value = False
        self.commit(ctx)
        git.push_set_upstream.assert_called_once_with(ctx.root, "origin", "story/S1.1-user-login")

    def test_push_failure_after_commit(self, project, ctx, git):
        """The commit exists, so the task is completed even though the push failed."""
        git.has_remote.return_value = True
        git.push.return_value = GitResult(1, "", "rejected")
        with pytest.raises(CommitError) as exc:
            self.commit(ctx)
        assert exc.value.reason == "push_failed"
        assert status_of(project, "1.1.1") == "completed"

    def test_hook_failure_keeps_committing(self, project, ctx, git):
        git.commit.return_value = GitResult(1, "", "lint-staged failed")
        with pytest.raises(CommitError) as exc:
            self.commit(ctx)
        assert exc.value.reason == "hook_failed"
        assert status_of(project, "1.1.1") == "committing"

    def test_no_changes(self, project, ctx, git):
        git.has_uncommitted_changes.return_value = False
        result = self.commit(ctx)
        assert not result.success
        assert result.output == "No changes to commit"
        git.commit.assert_not_called()
        assert status_of(project, "1.1.1") == "committing"

    def test_empty_message(self, ctx, git):
        result = self.commit(ctx, text="  ")
        assert not result.success
        git.stage_all.assert_not_called()

    def test_wrong_status(self, project, ctx, git):
        set_task_status(project, "1.1.1", "validating")
        with pytest.raises(InvalidWorkflowStateError):
            self.commit(ctx)
        git.commit.assert_not_called()


class TestTaskCommands:
    def test_do_in_planning(self, project, ctx):
        set_task_status(project, "1.1.1", "planning")
        result = cmd_do(Namespace(), ctx)
        assert "Task 1.1.1 - state: PLANNING" in result.output
        assert "Plan file: .taskflow/plans/T1.1.1-plan.md (missing)" in result.output
        assert "src/app.py" in result.context_files

    def test_do_in_validating_lists_commands(self, project, ctx):
        set_task_status(project, "1.1.1", "validating")
        result = cmd_do(Namespace(), ctx)
        assert "1. lint: true" in result.output
        assert "build" not in result.output.split("The following checks will run:")[1]

    def test_do_in_committing_shows_message_format(self, project, ctx):
        set_task_status(project, "1.1.1", "committing")
        result = cmd_do(Namespace(), ctx)
        assert "feat(F1): T1.1.1 - Login form" in result.output

    def test_do_lists_available_commands(self, project, ctx):
        set_task_status(project, "1.1.1", "implementing")
        output = cmd_do(Namespace(), ctx).output
        available = output.split("Available commands:")[1]
        assert "taskflow check" in available
        assert "taskflow back" in available
        assert "taskflow hold [reason]" in available
        assert "taskflow commit" not in available
        assert "taskflow start" not in available

    def test_do_in_setup_has_no_back(self, ctx):
        start(ctx)
        available = cmd_do(Namespace(), ctx).output.split("Available commands:")[1]
        assert "taskflow back" not in available
        assert "taskflow abort" in available

    def test_subtask(self, project, ctx):
        start(ctx)
        result = cmd_subtask(Namespace(subtask_id="1", pending=False), ctx)
        assert result.success
        assert "(1/2 complete)" in result.output
        assert read_task(project, "1.1.1")["subtasks"][0]["status"] == "completed"

        result = cmd_subtask(Namespace(subtask_id="1", pending=True), ctx)
        assert read_task(project, "1.1.1")["subtasks"][0]["status"] == "pending"

    def test_unknown_subtask(self, ctx):
        start(ctx)
        result = cmd_subtask(Namespace(subtask_id="9", pending=False), ctx)
        assert not result.success
        assert "subtasks: 1, 2" in result.output

    def test_note(self, project, ctx):
        start(ctx)
        result = cmd_note(Namespace(text=["Switched", "to", "v2"]), ctx)
        assert result.success
        assert read_task(project, "1.1.1")["notes"][0]["content"] == "Switched to v2"

    def test_empty_note(self, ctx):
        start(ctx)
        assert not cmd_note(Namespace(text=[]), ctx).success


class TestQueryCommands:
    def test_status_overview(self, ctx):
        start(ctx)
        result = cmd_status(Namespace(id=None), ctx)
        assert "Project: demo" in result.output
        assert "Active task: 1.1.1 - Login form [setup]" in result.output

    def test_status_without_active_suggests_next(self, ctx):
        result = cmd_status(Namespace(id=None), ctx)
        assert "No active task" in result.output
        assert result.next_steps == ["taskflow start 1.1.1  # Login form"]

    def test_status_task(self, paths, ctx):
        result = cmd_status(Namespace(id="1.1.2"), ctx)
        assert "Task:    1.1.2 - Submit handler" in result.output
        assert "Waiting on: 1.1.1" in result.output

    def test_status_story_and_feature(self, ctx):
        assert "Story:   1.2 - Profile" in cmd_status(Namespace(id="1.2"), ctx).output
        assert "Feature: 1 - Auth" in cmd_status(Namespace(id="1"), ctx).output

    def test_status_bad_id(self, ctx):
        assert not cmd_status(Namespace(id="abc"), ctx).success

    def test_next(self, ctx):
        result = cmd_next(Namespace(intermittent=False), ctx)
        assert result.output.startswith("Next task: 1.1.1 - Login form")
        assert result.next_steps == ["taskflow start 1.1.1"]

    def test_next_all_done(self, project, ctx):
        for task_id in ("1.1.1", "1.1.2", "1.2.1"):
            set_task_status(project, task_id, "completed")
        assert cmd_next(Namespace(intermittent=False), ctx).output == "All tasks are completed"

    def test_deps(self, ctx):
        result = cmd_deps(Namespace(task_id="1.1.2"), ctx)
        assert "Blocked by: 1.1.1" in result.output

        result = cmd_deps(Namespace(task_id="1.1.1"), ctx)
        assert "Required by:" in result.output
        assert "1.1.2 Submit handler" in result.output

    def test_find_requires_criteria(self, ctx):
        result = cmd_find(Namespace(status=None, skill=None, keyword=None, story=None, feature=None), ctx)
        assert not result.success
        assert "No search criteria given" in result.output
        assert any("--status" in step for step in result.next_steps)

    def test_find_by_keyword_and_story(self, ctx):
        result = cmd_find(Namespace(status=None, skill=None, keyword="LOGIN", story="1.1", feature=None), ctx)
        assert result.success
        assert "1 task(s) match" in result.output
        assert "T1.1.1 - Login form" in result.output
        assert "Story:   1.1 - User Login" in result.output
        assert "Feature: 1 - Auth" in result.output
        assert result.next_steps == ["taskflow status 1.1.1  # details", "taskflow start 1.1.1"]

    def test_find_by_status(self, project, ctx):
        set_task_status(project, "1.2.1", "completed")
        result = cmd_find(Namespace(status="completed", skill=None, keyword=None, story=None, feature=None), ctx)
        assert "T1.2.1 - Profile page" in result.output
        assert "T1.1.1" not in result.output

    def test_find_by_skill(self, project, ctx):
        path = task_file(project, "1.1.2")
        data = read_task(project, "1.1.2")
        data["skill"] = "backend"
        write_json(path, data)

        result = cmd_find(Namespace(status=None, skill="backend", keyword=None, story=None, feature="1"), ctx)
        assert "T1.1.2 - Submit handler" in result.output
        assert "T1.1.1" not in result.output
        assert "T1.2.1" not in result.output

    def test_find_no_matches(self, ctx):
        result = cmd_find(Namespace(status=None, skill=None, keyword="billing", story=None, feature=None), ctx)
        assert result.success
        assert result.output == "No tasks match keyword=billing"

    def test_history(self, ctx):
        start(ctx)
        cmd_note(Namespace(text=["Switched", "to", "v2"]), ctx)
        commits = [CommitInfo("abc1234", "2026-03-01", "feat(F1): T1.1.1 - Login form")]
        with patch("taskflow.commands.history.find_task_commits", return_value=commits) as mock:
            result = cmd_history(Namespace(task_id="1.1.1"), ctx)
        mock.assert_called_once_with(ctx.root, "1.1.1")
        assert "Task:    1.1.1 - Login form" in result.output
        assert "NOTE: Switched to v2" in result.output
        assert "abc1234 2026-03-01 feat(F1): T1.1.1 - Login form" in result.output

    def test_history_without_git(self, ctx, caplog):
        error = GitOperationError("log", "not a git repository")
        with patch("taskflow.commands.history.find_task_commits", side_effect=error):
            result = cmd_history(Namespace(task_id="1.2.1"), ctx)
        assert result.success
        assert "Could not retrieve commit history." in result.output
        assert "Notes:\n  (none)" in result.output
        assert "not a git repository" in caplog.text


class TestRetroCommands:
    def add(self, ctx, **overrides):
        args = dict(category="Lint", pattern="no-console", solution="Use the logger", criticality="Low")
        args.update(overrides)
        return cmd_retro_add(Namespace(**args), ctx)

    def test_add_creates_ledger(self, paths, ctx):
        result = self.add(ctx)
        assert result.success
        assert "#1" in result.output
        assert paths.retrospective_path.exists()

    def test_add_refuses_covered_pattern(self, ctx):
        self.add(ctx)
        result = self.add(ctx)
        assert not result.success
        assert "already covered by #1" in result.output

    def test_add_validates_category(self, paths, ctx):
        result = self.add(ctx, category="Style")
        assert not result.success
        assert not paths.retrospective_path.exists()

    def test_add_validates_criticality(self, ctx):
        assert not self.add(ctx, criticality="Urgent").success

    def test_list_sorted_by_count(self, paths, ctx):
        self.add(ctx)
        self.add(ctx, category="Build", pattern="ENOSPC", solution="Free disk", criticality="Critical")
        retrospective.increment_count(paths.retrospective_path, 2)

        output = cmd_retro_list(Namespace(category=None), ctx).output
        assert output.index("#2 [Build") < output.index("#1 [Lint")

    def test_list_filters_category(self, ctx):
        self.add(ctx)
        assert "No retrospective entries in category 'build'" in cmd_retro_list(Namespace(category="build"), ctx).output
