from __future__ import annotations

import re

_BULLET_CHARS = "•◦▪▫●○■□◆◇▶►-–—*·"
_BULLET_PATTERN = re.compile(rf"^\s*(?:[{re.escape(_BULLET_CHARS)}]|(?:\d+[\.\)]))\s+")
_SECTION_RE = re.compile(
    r"^\s*(summary|objective|profile|professional summary|experience|work experience|professional experience|"
    r"employment history|work history|skills|technical skills|core competencies|education|projects|"
    r"certifications)\s*:?\s*$",
    re.IGNORECASE,
)
_DOT_JS_RE = re.compile(r"\.js\b")
_MATCH_STRIP_RE = re.compile(r"[^a-z0-9\s+#]")
_SPACES_RE = re.compile(r"\s+")


def enumerate_lines(text: str) -> list[tuple[int, str]]:
    return [(index + 1, line) for index, line in enumerate(text.splitlines())]


def normalize_line(line: str) -> str:
    return _SPACES_RE.sub(" ", line).strip()


def is_bullet_like(line: str) -> bool:
    return bool(_BULLET_PATTERN.match(line))


def strip_bullet_prefix(line: str) -> str:
    return _BULLET_PATTERN.sub("", line).strip()


def is_section_heading(line: str) -> bool:
    stripped = normalize_line(line)
    if not stripped:
        return False
    if _SECTION_RE.match(stripped):
        return True
    return bool(stripped.isupper() and len(stripped.split()) <= 5 and len(stripped) <= 36)


def normalize_match_text(text: str) -> str:
    """Lowercase text for skill matching: `.js` folds into `js`, only [a-z0-9 +#] survive."""
    if not text:
        return ""
    lowered = _DOT_JS_RE.sub("js", text.lower())
    return _SPACES_RE.sub(" ", _MATCH_STRIP_RE.sub(" ", lowered)).strip()


def skill_variations(skill_name: str) -> list[str]:
    """React.js -> [reactjs, react]; React Native -> [react native, reactnative]."""
    normalized = normalize_match_text(skill_name)
    variations = [normalized]
    lowered = skill_name.lower()
    if ".js" in lowered:
        variations.append(re.sub(r"[^a-z0-9]", "", lowered.replace(".js", "js")))
        variations.append(re.sub(r"[^a-z0-9]", "", lowered.replace(".js", "")))
    no_spaces = normalized.replace(" ", "")
    if no_spaces != normalized:
        variations.append(no_spaces)
    return [variation for variation in dict.fromkeys(variations) if variation]
