"""Lenses — extra instruction blocks layered onto the base persona.

Two lookup tables: one keyed by the onboarding wizard's age bands, one keyed by
studio theme. A missing key yields an empty lens; prompt assembly simply skips
the section.
"""

from __future__ import annotations

import re

AGE_LENSES: dict[str, str] = {
    "Ages 5-7": """## AGE LENS: EARLY CHILDHOOD (Ages 5-7) — STORY-BASED INQUIRY
- Frame the project as a story the class lives through, with characters and a problem to solve.
- Work in short explore, make, share cycles of 10-20 minutes with movement and sensory hooks.
- Keep products tactile: models, class books, audio recordings, a gallery walk for families.
- Tools stay at craft materials and recycled items. No heat, blades or chemicals.
- Evidence comes from drawings, photos and "I can" statements, not written rubrics.""",
    "Ages 8-10": """## AGE LENS: ELEMENTARY (Ages 8-10) — INVESTIGATOR'S TOOLKIT
- Phases are concrete and sequential, moving from guided discovery to simple fair tests.
- Use job cards (data lead, designer, reporter) to channel growing independence.
- Aim for data posters, explainer videos, prototypes or teaching a younger class.
- Plan 2-4 week arcs with 20-30 minute work blocks and visible progress trackers.
- Rubrics stay short and student-friendly, with checklists and reflection logs.""",
    "Ages 11-14": """## AGE LENS: MIDDLE SCHOOL (Ages 11-14) — PROPOSAL-TO-PRODUCT PIPELINE
- Students pitch a proposal, then build, test and revise a product for a real audience.
- Offer structured choice and ownership; connect topics to identity and youth culture.
- Plan 3-6 week timelines with 30-45 minute blocks and sprint or kanban routines.
- Build in peer feedback clinics and user testing so iteration feels normal.
- Expect evidence-based justifications and documented design decisions.""",
    "Ages 15-18": """## AGE LENS: HIGH SCHOOL (Ages 15-18) — EXPERT-IN-TRAINING CYCLE
- Phases move from guided practice to independent work with authentic professional tools.
- Pair students with mentors or community experts who act as clients or coaches.
- Aim for policy briefs, tested prototypes, journalism or data investigations.
- Students scope problems, weigh trade-offs and defend methods in professional language.
- Rubrics foreground argument quality, product performance and collaboration.""",
    "Ages 18+": """## AGE LENS: HIGHER EDUCATION (Ages 18+) — CAPSTONE RESEARCH ARC
- Phases mirror a professional research cycle: discovery, scoping, build, analysis, defense.
- Expect self-directed exploration, peer review and original contributions to the field.
- Resources focus on primary sources, expert networks and industry partners.
- Deliverables are client-ready: portfolios, implementation plans, open datasets or code.
- Assessment weighs rigor, professionalism and reflection on outcomes versus goals.""",
}

STUDIO_LENSES: dict[str, str] = {
    "Design Studio": """## STUDIO LENS: DESIGN STUDIO
- Run the project as a design brief: empathise, define, ideate, prototype, test.
- Every phase ends in a critique where students present work in progress.
- Favour sketches, mock-ups and physical or digital prototypes over written reports.""",
    "Maker Studio": """## STUDIO LENS: MAKER STUDIO
- Center the project on building something that works, from cardboard to circuits.
- Schedule tool safety briefings before any fabrication activity.
- Document iterations with build logs and photos so failure becomes evidence of learning.""",
    "Civic Studio": """## STUDIO LENS: CIVIC STUDIO
- Anchor the challenge in a real community need and identify who is affected.
- Include stakeholder interviews and a public presentation to decision makers.
- Keep advocacy age-appropriate and balanced; students propose, they do not lobby.""",
    "Science Studio": """## STUDIO LENS: SCIENCE STUDIO
- Structure phases around questions, hypotheses, investigations and claims from evidence.
- Students collect and analyse their own data and explain its limits.
- Share results in a format scientists use: posters, lab notes or a short paper.""",
    "Storytelling Studio": """## STUDIO LENS: STORYTELLING STUDIO
- The final product tells a story: podcast, documentary, exhibit or performance.
- Research, interviews and drafting phases feed a narrative arc.
- Audiences outside the classroom hear or see the finished story.""",
}

_STUDIO_KEYS = {key.lower(): key for key in STUDIO_LENSES}
_AGE_KEYS = {key.lower(): key for key in AGE_LENSES}


def _band_for_grade(grade: int) -> str:
    if grade <= 2:
        return "Ages 5-7"
    if grade <= 5:
        return "Ages 8-10"
    if grade <= 8:
        return "Ages 11-14"
    return "Ages 15-18"


def _band_for_grade_range(start: str, end: int) -> str:
    if start in ("K", "0"):
        return "Ages 5-7"
    if end <= 5:
        return "Ages 8-10"
    if end <= 8:
        return "Ages 11-14"
    return "Ages 15-18"


def _band_for_age(age: int) -> str:
    if age <= 7:
        return "Ages 5-7"
    if age <= 10:
        return "Ages 8-10"
    if age <= 14:
        return "Ages 11-14"
    if age <= 18:
        return "Ages 15-18"
    return "Ages 18+"


def resolve_age_band(age_group: str | None) -> str | None:
    """Map free-text audience descriptions to an age-lens key.

    Accepts the wizard's own labels as well as what educators actually type:
    "6th graders", "Middle school", "Grades 9-12", "Year 7", "AP Biology (high
    school)", "college sophomores". A number counts as an age only next to age
    wording ("Ages 9", "10 year olds"). Returns None when nothing matches or
    the group is explicitly mixed.
    """
    if not age_group:
        return None

    exact = _AGE_KEYS.get(age_group.strip().lower())
    if exact:
        return exact

    text = re.sub(r"[–—]", "-", age_group)
    text = text.upper().strip()
    bare = re.sub(r"\(.*?\)", "", text).strip()

    if not text or "MIXED" in bare:
        return None

    if any(k in text for k in ("COLLEGE", "UNIVERSITY", "UNDERGRAD", "GRADUATE", "ADULT", "HIGHER ED", "18+")):
        return "Ages 18+"
    if any(k in text for k in ("KINDERGARTEN", "PRE-K", "EARLY", "K-2", "K2")):
        return "Ages 5-7"
    if "ELEMENTARY" in text:
        return "Ages 5-7" if "LOWER" in text else "Ages 8-10"
    if "MIDDLE" in text or "6-8" in text:
        return "Ages 11-14"
    if "HIGH" in text or "9-12" in text:
        return "Ages 15-18"
    if "3-5" in text or "PRIMARY" in text:
        return "Ages 8-10"

    ordinal = re.search(r"\b(\d{1,2})(?:ST|ND|RD|TH)[\s-]*GRADE", text)
    if ordinal:
        return _band_for_grade(int(ordinal.group(1)))

    age = re.search(r"\bAGES?\s*(\d{1,2})\b", text) or re.search(
        r"\b(\d{1,2})[\s-]*(?:YEAR|YR)S?[\s-]*OLD", text
    )
    if age:
        return _band_for_age(int(age.group(1)))

    # UK-style school years run one ahead of US grades.
    school_year = re.search(r"\bYEARS?\s*(\d{1,2})\b", text)
    if school_year:
        return _band_for_grade(max(int(school_year.group(1)) - 1, 0))

    grade_range = re.search(r"\b(K|\d{1,2})\s*-\s*(\d{1,2})\b", text)
    if grade_range:
        return _band_for_grade_range(grade_range.group(1), int(grade_range.group(2)))

    grade = re.search(r"\bGRADES?\s*(K|\d{1,2})\b", text)
    if grade:
        return "Ages 5-7" if grade.group(1) == "K" else _band_for_grade(int(grade.group(1)))

    return None


def get_age_lens(age_group: str | None) -> str:
    """Age-band lens text, or an empty string when the group is unknown."""
    key = resolve_age_band(age_group)
    return AGE_LENSES.get(key, "") if key else ""


def get_studio_lens(theme: str | None) -> str:
    """Studio lens text, or an empty string when the theme is unknown."""
    if not theme:
        return ""
    key = _STUDIO_KEYS.get(theme.strip().lower())
    return STUDIO_LENSES[key] if key else ""
