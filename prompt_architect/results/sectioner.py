"""Response sectioning for generated prompt text.

Splits the raw gateway reply into labeled sections ("--- Prompt 2 ---",
"--- Prompt 2A ---") and pulls the bolded "Master Prompt" field out of each
section for highlighting. Pure functions of their text input.
"""

import re
from typing import List

from prompt_architect.core.prompt_types import Section


PROMPT_LABEL_PATTERN = re.compile(r"---\s*Prompt\s*([A-Za-z0-9]+)\s*---", re.IGNORECASE)

MASTER_PROMPT_PATTERN = re.compile(
    r"\*\*(?:The )?Master Prompt\*\*[:\s]*(.*?)(?=\n\*\*|\Z)",
    re.IGNORECASE | re.DOTALL,
)

FALLBACK_TITLE = "Generated Prompt"


def extract_master_prompt(content: str) -> str | None:
    """Return the text following a bolded Master Prompt heading, or `None`."""
    match = MASTER_PROMPT_PATTERN.search(content or "")
    if not match:
        return None
    return match.group(1).strip().strip('"\n')


def parse_sections(text: str) -> List[Section]:
    """Split `text` into labeled sections in order of appearance.

    Text before the first label is dropped. Without any label the whole trimmed
    text becomes a single "Generated Prompt" section.
    """
    text = text or ""
    parts = PROMPT_LABEL_PATTERN.split(text)

    if len(parts) == 1:
        content = text.strip()
        return [Section(FALLBACK_TITLE, content, extract_master_prompt(content))]

    sections = []
    # re.split with one group yields [preamble, label, body, label, body, ...]
    for i in range(1, len(parts), 2):
        content = parts[i + 1].strip() if i + 1 < len(parts) else ""
        sections.append(
            Section(f"Prompt {parts[i]}", content, extract_master_prompt(content))
        )
    return sections


def render_sections(sections: List[Section], show_content: bool = True) -> str:
    """Format sections for terminal output."""
    lines = []
    for section in sections:
        lines.append(f"=== {section.title} ===")
        if section.master_prompt:
            lines.append("")
            lines.append("Master Prompt:")
            lines.append(section.master_prompt)
        if show_content:
            lines.append("")
            lines.append(section.content)
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"
