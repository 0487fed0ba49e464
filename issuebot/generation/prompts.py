"""
Prompt templates for the generation pipelines and the patch agent.
"""

PROMPTS = {
    "prd_draft": """As a professional Product Manager, create a Product Requirements Document (PRD) based on the following GitHub issue and repository README. The PRD should be in English.

**GitHub Issue Title:**
{title}

**GitHub Issue Body:**
{body}

**Repository README:**
{readme}

**PRD Structure:**
1.  **Background:** (Briefly describe the context and problem)
2.  **Goals:** (What are the primary objectives?)
3.  **User Stories:** (As a [user type], I want [an action] so that [a benefit])
4.  **Requirements:** (Detailed functional and non-functional requirements)
5.  **Success Metrics:** (How will we measure success?)
""",

    "language_detection": """Detect the primary language of the following text. Respond with the language name only (e.g., 'Traditional Chinese', 'Japanese').

Text:
{text}""",

    "translation": """Translate the following English PRD into {language}. Maintain the original formatting and structure.

**English PRD:**
{prd}""",

    "subtasks": """As an expert project manager, break down the following Product Requirements Document (PRD) into a series of actionable sub-tasks for the development team. Each sub-task should be a single, distinct piece of work.

Format the output as a GitHub-flavored Markdown checklist. Each item should clearly state the main function to be completed.

**Example:**
- [ ] Set up the initial project structure and CI/CD pipeline.
- [ ] Develop the user authentication module.

**Here is the PRD:**
{prd}""",

    "implement_feature": """As a senior software engineer, please modify the code to implement the feature described in the following GitHub issue.

**Issue Title:** {title}

**Issue Body:**
{body}

Only modify these files: {files}

Your response should only be the modified code, without any additional explanation.""",
}


def build_prd_prompt(title: str, body: str, readme: str) -> str:
    return PROMPTS["prd_draft"].format(title=title, body=body, readme=readme)


def build_language_detection_prompt(text: str) -> str:
    return PROMPTS["language_detection"].format(text=text)


def build_translation_prompt(language: str, prd: str) -> str:
    return PROMPTS["translation"].format(language=language, prd=prd)


def build_subtask_prompt(prd: str) -> str:
    return PROMPTS["subtasks"].format(prd=prd)


def build_feature_instruction(title: str, body: str, files: list[str]) -> str:
    return PROMPTS["implement_feature"].format(title=title, body=body, files=", ".join(files))
