"""Orchestrator — assembles stage system prompts from persona, lenses, workflow and project data.

Section order is fixed: base persona, age lens, studio lens, workflow, CONTEXT.
Empty lens sections are dropped. Project values are interpolated verbatim.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import structlog

from alf_coach.db.models import Project, Stage
from alf_coach.prompts.base import BASE_PERSONA
from alf_coach.prompts.lenses import get_age_lens, get_studio_lens, resolve_age_band
from alf_coach.prompts.workflows import (
    ASSIGNMENT_WORKFLOW,
    CURRICULUM_WORKFLOW,
    INTAKE_WORKFLOW,
    SUMMARY_WORKFLOW,
)

logger = structlog.get_logger()

MISSING = "Not provided"


@dataclass(frozen=True)
class _Section:
    name: str
    text: str


def _value(value: str | None) -> str:
    if value is None or not str(value).strip():
        return MISSING
    return str(value)


def _profile_lines(project: Project) -> list[str]:
    lines = [
        f"- Project Title: {_value(project.title)}",
        f"- Subject: {_value(project.subject)}",
        f"- Age Group: {_value(project.age_group)}",
        f"- Project Scope: {_value(project.project_scope)}",
        f"- Educator Perspective: {_value(project.educator_perspective)}",
    ]
    if project.location:
        lines.append(f"- Location: {project.location}")
    return lines


def _foundation_lines(project: Project) -> list[str]:
    return [
        f"- Big Idea: {_value(project.core_idea)}",
        f"- Essential Question: {_value(project.essential_question)}",
        f"- Challenge: {_value(project.challenge)}",
    ]


def _assignment_lines(project: Project) -> list[str]:
    if not project.assignments:
        return ["- None yet"]
    return [f"{i}. {a.title}" for i, a in enumerate(project.assignments, start=1)]


def _context(*blocks: tuple[str, list[str]]) -> str:
    parts = ["## CONTEXT"]
    for heading, lines in blocks:
        parts.append(f"### {heading}\n" + "\n".join(lines))
    return "\n\n".join(parts)


def _sections(project: Project, workflow: _Section, context: str) -> list[_Section]:
    sections = [_Section("base", BASE_PERSONA)]
    age_lens = get_age_lens(project.age_group)
    if age_lens:
        sections.append(_Section("age_lens", age_lens))
    studio_lens = get_studio_lens(project.studio_theme)
    if studio_lens:
        sections.append(_Section("studio_lens", studio_lens))
    sections.append(workflow)
    sections.append(_Section("context", context))
    return sections


def _intake_sections(project: Project) -> list[_Section]:
    context = _context(
        ("Project", _profile_lines(project)),
        ("Current Progress", _foundation_lines(project)),
    )
    return _sections(project, _Section("workflow:intake", INTAKE_WORKFLOW), context)


def _curriculum_sections(project: Project) -> list[_Section]:
    context = _context(
        ("Project", _profile_lines(project)),
        ("Foundations", _foundation_lines(project)),
        ("Curriculum Draft", [_value(project.curriculum_draft)]),
    )
    return _sections(project, _Section("workflow:curriculum", CURRICULUM_WORKFLOW), context)


def _assignment_sections(project: Project, latest_message: str | None = None) -> list[_Section]:
    blocks: list[tuple[str, list[str]]] = [
        ("Project", _profile_lines(project)),
        ("Foundations", _foundation_lines(project)),
        ("Curriculum Draft", [_value(project.curriculum_draft)]),
        ("Assignments So Far", _assignment_lines(project)),
    ]
    if latest_message:
        blocks.append(("Educator's Latest Request", [latest_message]))
    return _sections(
        project, _Section("workflow:assignment", ASSIGNMENT_WORKFLOW), _context(*blocks)
    )


def _summary_sections(project: Project) -> list[_Section]:
    context = _context(
        ("Project", _profile_lines(project)),
        ("Recorded So Far", _foundation_lines(project)),
    )
    return _sections(project, _Section("workflow:summary", SUMMARY_WORKFLOW), context)


def _join(sections: list[_Section]) -> str:
    return "\n\n".join(s.text for s in sections)


def build_intake_prompt(project: Project) -> str:
    """System prompt for the Ideation chat."""
    return _join(_intake_sections(project))


def build_curriculum_prompt(project: Project) -> str:
    """System prompt for the Learning Journey chat."""
    return _join(_curriculum_sections(project))


def build_assignment_prompt(project: Project, latest_message: str | None = None) -> str:
    """System prompt for the Deliverables chat, optionally echoing the newest request."""
    return _join(_assignment_sections(project, latest_message))


def build_summary_prompt(project: Project) -> str:
    """System prompt for the one-shot Ideation summary call."""
    return _join(_summary_sections(project))


def _stage_sections(
    project: Project, stage: Stage, latest_message: str | None = None
) -> list[_Section]:
    if stage == Stage.IDEATION:
        return _intake_sections(project)
    if stage == Stage.CURRICULUM:
        return _curriculum_sections(project)
    if stage == Stage.ASSIGNMENTS:
        return _assignment_sections(project, latest_message)
    raise ValueError(f"Stage '{stage.value}' has no chat workflow")


def build_stage_prompt(project: Project, stage: Stage, latest_message: str | None = None) -> str:
    """Dispatch to the builder for ``stage``. Raises ValueError for Completed."""
    return _join(_stage_sections(project, stage, latest_message))


def compose_stage_prompt(
    project: Project,
    stage: Stage,
    latest_message: str | None = None,
    summary: bool = False,
) -> dict[str, Any]:
    """Assemble a stage prompt and return it with a provenance manifest.

    The prompt text is identical to the matching ``build_*`` function.
    """
    if summary:
        sections = _summary_sections(project)
    else:
        sections = _stage_sections(project, stage, latest_message)
    prompt_text = _join(sections)
    warnings: list[str] = []

    names = [s.name for s in sections]
    if "age_lens" not in names:
        warnings.append(f"No age lens for age group '{project.age_group or ''}'")
    if project.studio_theme and "studio_lens" not in names:
        warnings.append(f"No studio lens for theme '{project.studio_theme}'")

    blank = [
        name
        for name, value in (
            ("title", project.title),
            ("subject", project.subject),
            ("ageGroup", project.age_group),
            ("educatorPerspective", project.educator_perspective),
        )
        if not value or not str(value).strip()
    ]
    if blank:
        warnings.append(f"Blank context fields: {', '.join(blank)}")

    # Rough estimate: 1 token ≈ 4 chars
    estimated_tokens = len(prompt_text) // 4

    manifest = {
        "composed_at": datetime.now(timezone.utc).isoformat(),
        "stage": stage.value,
        "sections": names,
        "age_band": resolve_age_band(project.age_group),
        "studio_theme": project.studio_theme if "studio_lens" in names else None,
        "estimated_tokens": estimated_tokens,
    }

    logger.debug(
        "prompt.composed",
        stage=stage.value,
        sections=names,
        tokens=estimated_tokens,
    )

    return {"prompt": prompt_text, "manifest": manifest, "warnings": warnings}
