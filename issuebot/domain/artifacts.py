"""
Artifacts the bot reads from and writes to issue comments.

The PRD marker is a wire convention: other runs find "the" PRD by scanning
comment bodies for it, so the rendered layout must stay stable.
"""

from typing import Optional, Sequence

from pydantic import BaseModel, Field

from issuebot.core.constants import (
    FILES_PREFIX,
    PRD_MARKER,
    PRD_SECTION_RULE,
    PRD_TRANSLATED_HEADER,
    SUBTASKS_HEADER,
    SUBTASKS_INTRO,
)
from issuebot.core.exceptions import FeatureRequestError
from issuebot.domain.trigger import Comment


class PRDArtifact(BaseModel):
    """A generated Product Requirements Document."""

    english: str
    language: str
    translated: Optional[str] = None

    @property
    def is_translated(self) -> bool:
        return self.translated is not None

    def render(self) -> str:
        """Render the comment body, marker first."""
        if self.translated is None:
            return f"{PRD_MARKER}{PRD_SECTION_RULE}{self.english}"
        header = PRD_TRANSLATED_HEADER.format(language=self.language.strip())
        return (
            f"{PRD_MARKER}{PRD_SECTION_RULE}{self.english}"
            f"{PRD_SECTION_RULE}{header}\n\n{self.translated}"
        )

    @classmethod
    def parse(cls, body: str) -> Optional["PRDArtifact"]:
        """
        Parse a comment body produced by render().

        Returns None when the body does not start with the marker. Bodies that
        merely mention the marker somewhere are still "PRD comments" for
        find_prd_comment(), but cannot be split into sections.
        """
        text = body.strip()
        if not text.startswith(PRD_MARKER):
            return None

        rest = text[len(PRD_MARKER):]
        if rest.startswith(PRD_SECTION_RULE):
            rest = rest[len(PRD_SECTION_RULE):]

        english, sep, tail = rest.rpartition(PRD_SECTION_RULE + "### PRD (")
        if not sep:
            return cls(english=rest.strip(), language="English")

        language, _, translated = tail.partition(")\n\n")
        return cls(english=english.strip(), language=language.strip(), translated=translated.strip())


def find_prd_comment(comments: Sequence[Comment]) -> Optional[Comment]:
    """Return the newest comment containing the PRD marker, if any."""
    for comment in reversed(comments):
        if PRD_MARKER in comment.body:
            return comment
    return None


class ChecklistArtifact(BaseModel):
    """Sub-task checklist generated from a PRD."""

    items: str = Field(..., description="Raw generator output (Markdown checklist)")

    def render(self) -> str:
        return f"{SUBTASKS_HEADER}\n\n{SUBTASKS_INTRO}\n\n{self.items}"


class FeatureRequest(BaseModel):
    """Files an implement_feature run may touch, taken from the issue body."""

    files: list[str]

    @classmethod
    def parse(cls, body: str) -> "FeatureRequest":
        """
        Read the first line starting with ``Files:``.

        Raises:
            FeatureRequestError: If no such line exists or it lists no files
        """
        files: list[str] = []
        for line in (body or "").splitlines():
            line = line.strip()
            if line.startswith(FILES_PREFIX):
                files = [
                    path.strip()
                    for path in line[len(FILES_PREFIX):].split(",")
                    if path.strip()
                ]
                break

        if not files:
            raise FeatureRequestError(
                "No files to modify. Please specify the files in the issue body "
                "using the format `Files: file1.go, path/to/file2.go`"
            )
        return cls(files=files)
