"""Sectioned text artifacts.

Emitters build an :class:`Artifact` as an ordered list of named sections, each
holding fully indented lines, so tests can look at one section at a time.
"""

from dataclasses import dataclass, field
from typing import List, Optional

INDENT = "    "


@dataclass
class Section:
    name: str
    lines: List[str] = field(default_factory=list)


class CodeWriter:
    """Appends lines to a section, tracking brace nesting."""

    def __init__(self, section: Section, level: int = 0) -> None:
        self.section = section
        self.level = level

    def line(self, text: str = "") -> "CodeWriter":
        self.section.lines.append(f"{INDENT * self.level}{text}" if text else "")
        return self

    def lines(self, texts: List[str]) -> "CodeWriter":
        for text in texts:
            self.line(text)
        return self

    def open(self, header: Optional[str] = None) -> "CodeWriter":
        if header:
            self.line(header)
        self.line("{")
        self.level += 1
        return self

    def close(self, suffix: str = "") -> "CodeWriter":
        self.level -= 1
        self.line("}" + suffix)
        return self


class Artifact:
    def __init__(self, name: str, kind: str, table: str = "") -> None:
        self.name = name
        self.kind = kind
        self.table = table
        self.sections: List[Section] = []

    def writer(self, section_name: str, level: int = 0) -> CodeWriter:
        section = Section(section_name)
        self.sections.append(section)
        return CodeWriter(section, level)

    def section(self, name: str) -> Section:
        for section in self.sections:
            if section.name == name:
                return section
        raise KeyError(f"{self.name} has no section {name!r}")

    def section_names(self) -> List[str]:
        return [section.name for section in self.sections]

    def lines(self) -> List[str]:
        out: List[str] = []
        for section in self.sections:
            out.extend(section.lines)
        return out

    def render(self) -> str:
        return "\n".join(self.lines()) + "\n"

    @property
    def path(self) -> str:
        return f"{self.kind}/{self.name}"


def csharp_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\r", " ").replace("\n", " ")
    return f'"{escaped}"'
