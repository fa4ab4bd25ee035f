"""
Structured command results.

Every workflow command returns a CommandResult instead of printing as it
goes. A failed result must say what to do next: failure() refuses an empty
next_steps list.
"""

from dataclasses import dataclass, field

SEPARATOR = "─" * 60


@dataclass
class CommandResult:
    success: bool
    output: str
    next_steps: list[str] = field(default_factory=list)
    ai_guidance: str = ""
    context_files: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.success and not self.next_steps:
            raise ValueError("A failed CommandResult needs at least one next step")

    @classmethod
    def ok(cls, output: str, next_steps: list[str] | None = None, **kwargs) -> "CommandResult":
        return cls(success=True, output=output, next_steps=list(next_steps or []), **kwargs)

    @classmethod
    def failure(cls, output: str, next_steps: list[str], errors: list[str] | None = None,
                **kwargs) -> "CommandResult":
        return cls(success=False, output=output, next_steps=list(next_steps),
                   errors=list(errors or []), **kwargs)

    def format(self) -> str:
        """Render as OUTPUT / CONTEXT FILES / NEXT STEPS / AI GUIDANCE / WARNINGS / ERRORS sections."""
        sections = ["OUTPUT:", SEPARATOR, self.output, ""]

        if self.context_files:
            sections += ["CONTEXT FILES (Read these before proceeding):", SEPARATOR]
            sections += [f"{i}. {path}" for i, path in enumerate(self.context_files, 1)]
            sections.append("")

        if self.next_steps:
            sections += ["NEXT STEPS:", SEPARATOR]
            sections += [f"  {step}" for step in self.next_steps]
            sections.append("")

        if self.ai_guidance:
            sections += ["AI GUIDANCE:", SEPARATOR, self.ai_guidance, ""]

        if self.warnings:
            sections += ["WARNINGS:", SEPARATOR]
            sections += [f"⚠ {w}" for w in self.warnings]
            sections.append("")

        if self.errors:
            sections += ["ERRORS:", SEPARATOR]
            sections += [f"✗ {e}" for e in self.errors]
            sections.append("")

        return "\n".join(sections)
