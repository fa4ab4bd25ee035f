"""
taskflow check - Advance the active task one step.

In planning the plan file must exist. In validating every configured
validation command must pass; on failure the output is matched against the
retrospective ledger, new error patterns are recorded, and an error analysis
(LLM or manual) is attached to the result.
"""

import logging

from taskflow.agents.llm import guidance_or_fallback
from taskflow.lib import retrospective
from taskflow.lib.display import relative
from taskflow.lib.guidance import format_instructions, render_next_steps
from taskflow.lib.log_parser import ParsedLog, format_errors, parse_log
from taskflow.lib.models import ActiveTask, Task, TasksProgress, TaskStatus
from taskflow.lib.prompts import build_section, render_prompt
from taskflow.lib.result import CommandResult
from taskflow.runner import validation
from taskflow.runner.context import CommandContext
from taskflow.workflow.state_machine import fire, get_plan_path, next_status

logger = logging.getLogger(__name__)

MANUAL_ANALYSIS = """Manual error analysis:
  1. Read the error summary for each failed check above
  2. Open the full log for the first failing check and fix the first error; later errors often follow from it
  3. Check the retrospective matches listed in the warnings for known fixes
  4. If this is a new kind of error, record it with 'taskflow retro add'"""


def cmd_check(args, ctx: CommandContext) -> CommandResult:
    progress, active = ctx.require_active()
    task = active.task
    status = task.status

    if status == TaskStatus.VALIDATING:
        return _check_validation(ctx, progress, active)

    if status == TaskStatus.COMMITTING:
        return CommandResult.failure(
            f"Task {task.id} is ready to commit; check has nothing left to verify",
            next_steps=render_next_steps(TaskStatus.COMMITTING, task.id),
        )

    plan_file = get_plan_path(ctx.paths.plans_dir, task.id)
    plan_path = relative(plan_file, ctx.root)
    moved = fire(ctx.paths.tasks_dir, progress, active.file_path, task, "advance",
                 plan_exists=plan_file.exists())

    if not moved:
        return CommandResult.failure(
            f"Task {task.id} stays in PLANNING: missing plan artifact {plan_path}",
            next_steps=render_next_steps(TaskStatus.PLANNING, task.id, plan_path),
            errors=[f"Missing plan artifact: {plan_path}"],
        )

    return _advanced(status, task.status, task.id, plan_path)


def _advanced(source: TaskStatus, dest: TaskStatus, task_id: str, plan_path: str = "") -> CommandResult:
    output = [
        f"Task {task_id}: {source.value} -> {dest.value}",
        "",
        format_instructions(dest, task_id, plan_path),
    ]
    return CommandResult.ok(
        "\n".join(output),
        next_steps=render_next_steps(dest, task_id, plan_path),
    )


def _check_validation(ctx: CommandContext, progress: TasksProgress, active: ActiveTask) -> CommandResult:
    task = active.task
    summary = validation.run_all(
        ctx.config.validation.commands,
        task.id,
        cwd=ctx.root,
        logs_dir=ctx.paths.logs_dir,
    )
    validation.save_validation_status(ctx.paths.logs_dir, task.id, summary)

    lines = [f"Validation for task {task.id}:"]
    if not summary.results:
        lines.append(f"  {summary.all_output}")
    for result in summary.results:
        mark = "✓" if result.passed else "✗"
        log = f"  (log: {relative(result.log_file, ctx.root)})" if result.log_file else ""
        lines.append(f"  {mark} {result.label}{log}")

    # The FSM gate decides; a failed summary holds the task in validating
    moved = fire(ctx.paths.tasks_dir, progress, active.file_path, task, "advance",
                 validation_passed=summary.passed)
    if moved:
        lines += ["", f"All validations passed. Status: {next_status(TaskStatus.VALIDATING).value.upper()}"]
        return CommandResult.ok(
            "\n".join(lines),
            next_steps=render_next_steps(TaskStatus.COMMITTING, task.id),
        )

    return _validation_failure(ctx, active, summary, lines)


def _validation_failure(ctx: CommandContext, active: ActiveTask, summary: validation.ValidationSummary,
                        lines: list[str]) -> CommandResult:
    task = active.task
    ledger = ctx.paths.retrospective_path
    warnings = []

    report = retrospective.process_output(ledger, summary.all_output)
    for entry in report.known:
        warnings.append(f"Known error #{entry.id} [{entry.category}, seen {entry.count}x]: "
                        f"{entry.pattern} -> {entry.solution}")

    parsed = parse_log(summary.all_output)
    new_patterns = retrospective.extract_new_patterns(parsed.errors, retrospective.load(ledger))
    if new_patterns:
        retrospective.ensure_ledger(ledger)
        for entry_id, candidate in retrospective.record_new_patterns(ledger, new_patterns):
            warnings.append(f"New error pattern recorded as #{entry_id} [{candidate.category}]: "
                            f"{candidate.pattern}")
    elif report.has_new_errors:
        warnings.append("Errors found that match no known pattern; consider 'taskflow retro add'")

    failed = [r for r in summary.results if not r.passed]
    for result in failed:
        lines += ["", f"--- {result.label.upper()} ---", result.summary]

    if parsed.errors:
        lines += ["", f"Parsed {parsed.error_count} error(s), {parsed.warning_count} warning(s):",
                  format_errors(parsed.errors)]

    analysis, from_llm = guidance_or_fallback(ctx.llm, _analysis_prompt(task, summary, report, parsed),
                                              MANUAL_ANALYSIS)
    if not from_llm:
        lines += ["", analysis]

    next_steps = ["Fix the errors listed above in your project source code"]
    next_steps += [f"Full log for {r.label}: {relative(r.log_file, ctx.root)}" for r in failed if r.log_file]
    next_steps.append("taskflow check  # re-run validation")

    return CommandResult.failure(
        "\n".join(lines),
        next_steps=next_steps,
        errors=[f"{label} failed" for label in summary.failed_checks],
        warnings=warnings,
        ai_guidance=analysis if from_llm else "",
    )


def _analysis_prompt(task: Task, summary: validation.ValidationSummary, report: retrospective.MatchReport,
                     parsed: ParsedLog) -> str:
    errors = format_errors(parsed.errors) if parsed.errors else "\n\n".join(
        f"{r.label}:\n{r.summary}" for r in summary.results if not r.passed
    )
    known = "\n".join(f"- {e.pattern}: {e.solution}" for e in report.known)
    return render_prompt(
        "error_analysis",
        task_id=task.id,
        title=task.title,
        failed_checks=", ".join(summary.failed_checks),
        errors=errors,
        known_section=build_section(known, "## Known fixes from the retrospective"),
    )
