#!/usr/bin/env python3
"""TaskFlow CLI entrypoint."""

import sys
import argparse
import logging
from pathlib import Path

from taskflow.lib.errors import PreconditionError, TaskflowError
from taskflow.lib.result import CommandResult
from taskflow.runner.context import CommandContext
from taskflow.commands import start as cmd_start_module
from taskflow.commands import do as cmd_do_module
from taskflow.commands import check as cmd_check_module
from taskflow.commands import skip as cmd_skip_module
from taskflow.commands import hold as cmd_hold_module
from taskflow.commands import resume as cmd_resume_module
from taskflow.commands import abort as cmd_abort_module
from taskflow.commands import back as cmd_back_module
from taskflow.commands import commit as cmd_commit_module
from taskflow.commands import status as cmd_status_module
from taskflow.commands import next as cmd_next_module
from taskflow.commands import deps as cmd_deps_module
from taskflow.commands import find as cmd_find_module
from taskflow.commands import history as cmd_history_module
from taskflow.commands import subtask as cmd_subtask_module
from taskflow.commands import note as cmd_note_module
from taskflow.commands import retro as cmd_retro_module

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)


def cmd_start(args, ctx):
    return cmd_start_module.cmd_start(args, ctx)


def cmd_do(args, ctx):
    return cmd_do_module.cmd_do(args, ctx)


def cmd_check(args, ctx):
    return cmd_check_module.cmd_check(args, ctx)


def cmd_skip(args, ctx):
    return cmd_skip_module.cmd_skip(args, ctx)


def cmd_hold(args, ctx):
    return cmd_hold_module.cmd_hold(args, ctx)


def cmd_resume(args, ctx):
    return cmd_resume_module.cmd_resume(args, ctx)


def cmd_abort(args, ctx):
    return cmd_abort_module.cmd_abort(args, ctx)


def cmd_back(args, ctx):
    return cmd_back_module.cmd_back(args, ctx)


def cmd_commit(args, ctx):
    return cmd_commit_module.cmd_commit(args, ctx)


def cmd_status(args, ctx):
    return cmd_status_module.cmd_status(args, ctx)


def cmd_next(args, ctx):
    return cmd_next_module.cmd_next(args, ctx)


def cmd_deps(args, ctx):
    return cmd_deps_module.cmd_deps(args, ctx)


def cmd_find(args, ctx):
    return cmd_find_module.cmd_find(args, ctx)


def cmd_history(args, ctx):
    return cmd_history_module.cmd_history(args, ctx)


def cmd_subtask(args, ctx):
    return cmd_subtask_module.cmd_subtask(args, ctx)


def cmd_note(args, ctx):
    return cmd_note_module.cmd_note(args, ctx)


def cmd_retro_list(args, ctx):
    return cmd_retro_module.cmd_retro_list(args, ctx)


def cmd_retro_add(args, ctx):
    return cmd_retro_module.cmd_retro_add(args, ctx)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='taskflow', description='TaskFlow developer workflow CLI')
    parser.add_argument('--root', type=Path, default=Path.cwd(), help='Project root (default: current directory)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # taskflow start
    p_start = subparsers.add_parser('start', help='Start a task')
    p_start.add_argument('task_id', help='Task ID (e.g., 1.2.3)')
    p_start.set_defaults(func=cmd_start)

    # taskflow do
    p_do = subparsers.add_parser('do', help='Instructions for the current status')
    p_do.set_defaults(func=cmd_do)

    # taskflow check
    p_check = subparsers.add_parser('check', help='Advance the active task (runs validation when validating)')
    p_check.set_defaults(func=cmd_check)

    # taskflow skip
    p_skip = subparsers.add_parser('skip', help='Block the active task')
    p_skip.add_argument('reason', nargs='*', help='Why the task is blocked (required)')
    p_skip.set_defaults(func=cmd_skip)

    # taskflow hold
    p_hold = subparsers.add_parser('hold', help='Put the active task on hold')
    p_hold.add_argument('reason', nargs='*', help='Optional reason')
    p_hold.set_defaults(func=cmd_hold)

    # taskflow resume
    p_resume = subparsers.add_parser('resume', help='Resume a blocked or on-hold task')
    p_resume.add_argument('status', nargs='?', help='Status to resume into (default: where it stopped)')
    p_resume.add_argument('--task', '-t', help='Task ID (needed when several tasks are parked)')
    p_resume.set_defaults(func=cmd_resume)

    # taskflow abort
    p_abort = subparsers.add_parser('abort', help='Reset the active task to not-started')
    p_abort.set_defaults(func=cmd_abort)

    # taskflow back
    p_back = subparsers.add_parser('back', help='Step the active task back one state')
    p_back.set_defaults(func=cmd_back)

    # taskflow commit
    p_commit = subparsers.add_parser('commit', help='Commit, push and complete the active task')
    p_commit.add_argument('message', nargs='*', help='Bullet points, separated by newlines or \\n')
    p_commit.set_defaults(func=cmd_commit)

    # taskflow status
    p_status = subparsers.add_parser('status', help='Project overview or item details')
    p_status.add_argument('id', nargs='?', help='Feature, story or task ID')
    p_status.set_defaults(func=cmd_status)

    # taskflow next
    p_next = subparsers.add_parser('next', help='Find the next available task')
    p_next.add_argument('--intermittent', '-i', action='store_true', help='Include intermittent (F0) tasks')
    p_next.set_defaults(func=cmd_next)

    # taskflow deps
    p_deps = subparsers.add_parser('deps', help='Show task dependencies')
    p_deps.add_argument('task_id', help='Task ID')
    p_deps.set_defaults(func=cmd_deps)

    # taskflow find
    p_find = subparsers.add_parser('find', help='Search tasks')
    p_find.add_argument('--status', '-s', help='Task status, e.g. not-started')
    p_find.add_argument('--skill', help='Task skill, e.g. frontend')
    p_find.add_argument('--keyword', '-k', help='Text in the task title')
    p_find.add_argument('--story', help='Story ID')
    p_find.add_argument('--feature', help='Feature ID')
    p_find.set_defaults(func=cmd_find)

    # taskflow history
    p_history = subparsers.add_parser('history', help='Notes and commits for a task')
    p_history.add_argument('task_id', help='Task ID')
    p_history.set_defaults(func=cmd_history)

    # taskflow subtask
    p_subtask = subparsers.add_parser('subtask', help='Mark a subtask of the active task complete')
    p_subtask.add_argument('subtask_id', help='Subtask ID')
    p_subtask.add_argument('--pending', action='store_true', help='Mark pending instead')
    p_subtask.set_defaults(func=cmd_subtask)

    # taskflow note
    p_note = subparsers.add_parser('note', help='Add a note to the active task')
    p_note.add_argument('text', nargs='*', help='Note text')
    p_note.set_defaults(func=cmd_note)

    # taskflow retro
    p_retro = subparsers.add_parser('retro', help='Retrospective ledger')
    retro_sub = p_retro.add_subparsers(dest='retro_command', required=True)

    p_retro_list = retro_sub.add_parser('list', help='List known error patterns')
    p_retro_list.add_argument('--category', '-c', help='Filter by category')
    p_retro_list.set_defaults(func=cmd_retro_list)

    p_retro_add = retro_sub.add_parser('add', help='Add a known error pattern')
    p_retro_add.add_argument('--category', required=True, help='Category (e.g., "Type Error")')
    p_retro_add.add_argument('--pattern', required=True, help='Regex or literal matched against output')
    p_retro_add.add_argument('--solution', required=True, help='How to fix it')
    p_retro_add.add_argument('--criticality', required=True, help='Low, Medium, High or Critical')
    p_retro_add.set_defaults(func=cmd_retro_add)

    return parser


def run(args) -> int:
    """Run a parsed command and print its result. Returns the exit code."""
    try:
        ctx = CommandContext.create(args.root)
        if ctx.config.debug and not args.verbose:
            logging.getLogger().setLevel(logging.DEBUG)
        result = args.func(args, ctx)
    except PreconditionError as e:
        next_steps = [e.recovery_hint] if e.recovery_hint else ["taskflow status"]
        result = CommandResult.failure(e.message, next_steps=next_steps, errors=[e.code])
    except TaskflowError as e:
        logger.debug(f"{e.code}: {e.message}", exc_info=True)
        print(f"ERROR: {e.message}", file=sys.stderr)
        if e.recovery_hint:
            print(f"  {e.recovery_hint}", file=sys.stderr)
        return e.exit_code

    print(result.format())
    return 0


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    return run(args)


if __name__ == '__main__':
    sys.exit(main())
