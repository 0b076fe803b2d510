"""
Static subject catalog.

Two branches, five subjects each. Subject ids are only unique within a
branch (both branches have `m3` and `se`).
"""

import enum
from dataclasses import dataclass
from typing import Dict, List, Tuple

from noteshub.core.exceptions import NotFound, ValidationFailed


class Branch(str, enum.Enum):
    CS = "cs"
    IT = "it"


class ResourceTag(str, enum.Enum):
    ENDSEM = "Endsem"
    MIDTERM = "Midterm"
    IMP_QUESTIONS = "Imp Questions"
    TUTORIAL = "Tutorial"
    OTHER = "Other"


ALL_TAGS = "All"


@dataclass(frozen=True)
class Subject:
    branch: Branch
    id: str
    name: str
    description: str


BRANCH_NAMES: Dict[Branch, str] = {
    Branch.CS: "Computer Science",
    Branch.IT: "Information Technology",
}

_SUBJECTS: List[Subject] = [
    Subject(Branch.CS, "m3", "Mathematics 3 (M3)",
            "Calculus, Differential Equations, Linear Algebra, Transforms, and other "
            "mathematical concepts essential for computer science."),
    Subject(Branch.CS, "ppl", "Principles of Programming Languages (PPL)",
            "Study of programming language concepts, paradigms, syntax and semantics, "
            "and implementation methods."),
    Subject(Branch.CS, "se", "Software Engineering (SE)",
            "Topics include software development lifecycle, requirements analysis, design "
            "methodologies, testing strategies, and project management."),
    Subject(Branch.CS, "dsa", "Data Structures and Algorithms (DSA)",
            "Covers various data structures like arrays, linked lists, trees, graphs and "
            "algorithms for searching, sorting, and optimization."),
    Subject(Branch.CS, "mp", "Microprocessors (MP)",
            "Study of microprocessor architecture, assembly language programming, "
            "interfacing, and system design principles."),
    Subject(Branch.IT, "cg", "Computer Graphics (CG)",
            "Covers 2D and 3D graphics concepts, algorithms for rendering, transformation, "
            "and visualization techniques."),
    Subject(Branch.IT, "pa", "Programming and Applications (PA)",
            "Advanced programming concepts, application development strategies, and modern "
            "programming paradigms."),
    Subject(Branch.IT, "dbms", "Database Management Systems (DBMS)",
            "Topics include relational model, SQL, normalization, transaction processing, "
            "and database design methodologies."),
    Subject(Branch.IT, "m3", "Mathematics 3 (M3)",
            "Calculus, Differential Equations, Linear Algebra, Transforms, and other "
            "mathematical concepts essential for IT."),
    Subject(Branch.IT, "se", "Software Engineering (SE)",
            "Topics include software development lifecycle, requirements analysis, design "
            "methodologies, testing strategies, and project management for IT applications."),
]

SUBJECTS: Dict[Tuple[Branch, str], Subject] = {(s.branch, s.id): s for s in _SUBJECTS}


def parse_branch(value) -> Branch:
    try:
        return Branch(str(value).lower())
    except ValueError:
        raise NotFound(f"Unknown branch: {value}")


def list_branches() -> List[Dict[str, str]]:
    return [{"id": b.value, "name": BRANCH_NAMES[b]} for b in Branch]


def get_branch(branch) -> Dict[str, str]:
    branch = parse_branch(branch)
    return {"id": branch.value, "name": BRANCH_NAMES[branch]}


def list_subjects(branch) -> List[Subject]:
    branch = parse_branch(branch)
    return [s for s in _SUBJECTS if s.branch == branch]


def get_subject(branch, subject_id: str) -> Subject:
    branch = parse_branch(branch)
    subject = SUBJECTS.get((branch, subject_id))
    if subject is None:
        raise NotFound(f"Unknown subject '{subject_id}' for branch '{branch.value}'")
    return subject


def parse_tag(value: str) -> ResourceTag:
    try:
        return ResourceTag(value)
    except ValueError:
        raise ValidationFailed(f"Unknown tag: {value}")


def parse_tag_filter(value: str):
    """Returns None for 'All', otherwise the matching tag."""
    if value is None or value == ALL_TAGS:
        return None
    return parse_tag(value)
