"""Local code and commit heuristics used by the ``code-review`` tool.

Nothing here performs I/O; inputs are plain strings and provider payloads.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Any

LONG_FILE_LINES = 300
VERY_LONG_FILE_LINES = 500
MAX_LINE_LENGTH = 120
MAX_SUBJECT_LENGTH = 72
LARGE_PR_CHANGES = 500

LANGUAGES = {
    "js": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "py": "python",
    "java": "java",
    "cpp": "cpp",
    "c": "c",
    "h": "c",
    "php": "php",
    "rb": "ruby",
    "go": "go",
    "rs": "rust",
    "swift": "swift",
    "kt": "kotlin",
    "scala": "scala",
    "html": "html",
    "css": "css",
    "scss": "scss",
    "md": "markdown",
    "json": "json",
    "xml": "xml",
    "yaml": "yaml",
    "yml": "yaml",
    "sh": "shell",
}

_COMMENT_PREFIXES = ("//", "#", "/*", "*", "--", "<!--")

# Debug output that should not reach production, per language.
_DEBUG_CALLS = {
    "javascript": ("console.log", "allow-console"),
    "typescript": ("console.log", "allow-console"),
    "python": ("print(", "allow-print"),
}

CONVENTIONAL_COMMIT = re.compile(r"^(feat|fix|docs|style|refactor|test|chore|perf|ci|build|revert)(\(.+\))?!?: .{1,50}")
_TODO_MARKER = re.compile(r"\b(TODO|FIXME|XXX)\b")


def detect_language(file_path: str | None) -> str:
    if not file_path:
        return "unknown"
    suffix = PurePosixPath(file_path).suffix.lstrip(".").lower()
    return LANGUAGES.get(suffix, "unknown")


def quality_score(*, lines: int = 0, issues: int = 0, comment_ratio: float = 0.0) -> int:
    score = 100 - issues * 10
    if lines > VERY_LONG_FILE_LINES:
        score -= 20
    if comment_ratio > 0.2:
        score += 10
    return max(0, min(100, score))


def analyze_code(code: str, *, language: str, file_name: str, rules: list[str] | None = None) -> dict[str, Any]:
    """Line-based quality heuristics for a single source file."""
    rules = rules or []
    lines = code.split("\n")
    issues: list[dict[str, Any]] = []
    suggestions: list[str] = []

    if len(lines) > LONG_FILE_LINES:
        issues.append(
            {
                "type": "complexity",
                "severity": "medium",
                "message": "Arquivo muito longo - considere dividir em módulos menores",
                "line": 1,
            }
        )

    debug_call, allow_rule = _DEBUG_CALLS.get(language, (None, None))
    comment_lines = 0
    long_lines: list[int] = []
    for number, line in enumerate(lines, start=1):
        stripped = line.strip()
        if stripped.startswith(_COMMENT_PREFIXES):
            comment_lines += 1
        if len(line) > MAX_LINE_LENGTH:
            long_lines.append(number)
        if debug_call and debug_call in line and allow_rule not in rules and not stripped.startswith(_COMMENT_PREFIXES):
            issues.append(
                {
                    "type": "code-quality",
                    "severity": "low",
                    "message": f"Uso de {debug_call.rstrip('(')} detectado - considere remover para produção",
                    "line": number,
                }
            )
        if _TODO_MARKER.search(line) and "allow-todo" not in rules:
            issues.append(
                {
                    "type": "maintainability",
                    "severity": "low",
                    "message": "Marcador pendente (TODO/FIXME) encontrado",
                    "line": number,
                }
            )

    if long_lines and "allow-long-lines" not in rules:
        issues.append(
            {
                "type": "style",
                "severity": "low",
                "message": f"{len(long_lines)} linhas com mais de {MAX_LINE_LENGTH} caracteres",
                "line": long_lines[0],
            }
        )

    comment_ratio = comment_lines / len(lines) if lines else 0.0
    if comment_ratio < 0.1:
        suggestions.append("Considere adicionar mais comentários explicativos")

    return {
        "file": file_name,
        "language": language,
        "lines_count": len(lines),
        "comment_lines": comment_lines,
        "comment_ratio": round(comment_ratio, 2),
        "issues": issues,
        "suggestions": suggestions,
        "quality_score": quality_score(lines=len(lines), issues=len(issues), comment_ratio=comment_ratio),
    }


def analyze_commit_message(message: str) -> dict[str, Any]:
    subject = message.split("\n", 1)[0].strip()
    analysis: dict[str, Any] = {
        "quality": "good",
        "suggestions": [],
        "follows_conventions": bool(CONVENTIONAL_COMMIT.match(subject)),
    }
    if not analysis["follows_conventions"]:
        analysis["suggestions"].append("Considere usar conventional commits (feat:, fix:, docs:, etc.)")
    if len(subject) > MAX_SUBJECT_LENGTH:
        analysis["quality"] = "medium"
        analysis["suggestions"].append("Mensagem muito longa - considere resumir na primeira linha")
    if len(subject) < 10:
        analysis["quality"] = "low"
        analysis["suggestions"].append("Mensagem muito curta - seja mais descritivo")
    return analysis


def review_pull_request(pr: dict[str, Any]) -> dict[str, Any]:
    additions = int(pr.get("additions") or 0)
    deletions = int(pr.get("deletions") or 0)
    title = str(pr.get("title") or "")
    body = str(pr.get("body") or "")

    suggestions = []
    penalties = 0
    if not body.strip():
        suggestions.append("Adicione uma descrição ao PR explicando o contexto da mudança")
        penalties += 1
    if additions + deletions > LARGE_PR_CHANGES:
        suggestions.append("PR grande - considere dividir em mudanças menores")
        penalties += 2
    if not CONVENTIONAL_COMMIT.match(title):
        suggestions.append("Considere um título no formato conventional commits")
        penalties += 1
    if pr.get("draft"):
        suggestions.append("PR ainda está em rascunho")

    return {
        "pr_number": pr.get("number"),
        "title": title,
        "state": pr.get("state"),
        "changes": {
            "additions": additions,
            "deletions": deletions,
            "files_changed": pr.get("changed_files"),
        },
        "quality_score": quality_score(issues=penalties),
        "suggestions": suggestions,
    }
