from dataclasses import dataclass
from typing import Dict, Iterable, List


@dataclass(frozen=True)
class Issue:
    severity: str
    code: str
    message: str
    path: str = "/"


def table_path(table: str, column: str = "") -> str:
    if column:
        return f"/{table}/{column}"
    return f"/{table}"


def has_errors(issues: Iterable[Issue]) -> bool:
    return any(issue.severity == "error" for issue in issues)


def to_lines(issues: List[Issue]) -> List[str]:
    lines = []
    for issue in issues:
        lines.append(
            f"[{issue.severity.upper()}] {issue.code} {issue.path}: {issue.message}"
        )
    return lines


def issues_as_dicts(issues: Iterable[Issue]) -> List[Dict[str, str]]:
    return [
        {
            "severity": issue.severity,
            "code": issue.code,
            "message": issue.message,
            "path": issue.path,
        }
        for issue in issues
    ]
