"""
taskflow retro - List and add retrospective ledger entries.
"""

from taskflow.lib import retrospective
from taskflow.lib.result import CommandResult
from taskflow.runner.context import CommandContext


def cmd_retro_list(args, ctx: CommandContext) -> CommandResult:
    entries = retrospective.load(ctx.paths.retrospective_path)
    category = getattr(args, "category", None)
    if category:
        entries = [e for e in entries if e.category.lower() == category.lower()]

    if not entries:
        scope = f" in category '{category}'" if category else ""
        return CommandResult.ok(
            f"No retrospective entries{scope}",
            next_steps=['taskflow retro add --category ... --pattern ... --solution ... --criticality ...'],
        )

    lines = [f"{len(entries)} known error pattern(s):", ""]
    for entry in sorted(entries, key=lambda e: e.count, reverse=True):
        lines.append(f"#{entry.id} [{entry.category}, {entry.criticality}] seen {entry.count}x")
        lines.append(f"    pattern:  {entry.pattern}")
        lines.append(f"    solution: {entry.solution}")
    return CommandResult.ok("\n".join(lines))


def cmd_retro_add(args, ctx: CommandContext) -> CommandResult:
    usage = ("taskflow retro add --category <category> --pattern <regex> "
             "--solution <fix> --criticality <level>")

    if args.category not in retrospective.VALID_CATEGORIES:
        return CommandResult.failure(
            f"Invalid category '{args.category}'",
            next_steps=[usage, f"Categories: {', '.join(retrospective.VALID_CATEGORIES)}"],
        )
    if args.criticality not in retrospective.VALID_CRITICALITIES:
        return CommandResult.failure(
            f"Invalid criticality '{args.criticality}'",
            next_steps=[usage, f"Criticalities: {', '.join(retrospective.VALID_CRITICALITIES)}"],
        )
    if not args.pattern.strip() or not args.solution.strip():
        return CommandResult.failure("Pattern and solution must not be empty", next_steps=[usage])

    ledger = ctx.paths.retrospective_path
    retrospective.ensure_ledger(ledger)

    with retrospective.ledger_lock(ledger):
        existing = retrospective.match(retrospective.load(ledger), args.pattern)
        if existing:
            ids = ", ".join(f"#{e.id}" for e in existing)
            return CommandResult.failure(
                f"Pattern is already covered by {ids}",
                next_steps=["taskflow retro list  # review the existing entries"],
            )
        entry_id = retrospective.append(ledger, args.category, args.pattern, args.solution, args.criticality)

    return CommandResult.ok(
        f"Added retrospective entry #{entry_id} [{args.category}, {args.criticality}]",
        next_steps=["taskflow retro list"],
    )
