"""
Heuristic extraction of long-lived facts from chat turns.

Everything here is pure string work (substring checks and regexes), no I/O,
so the functions are cheap to call on every message and easy to test.
"""
from __future__ import annotations

import dataclasses
import re
from typing import Dict, List

from app.models.database_models import MemoryType


@dataclasses.dataclass
class MemoryInsight:
    memory_type: str
    content: str
    importance: int
    context_tags: List[str] = dataclasses.field(default_factory=list)


# Importance scores for memories extracted after each turn
PREFERENCE_IMPORTANCE = 8
GOAL_IMPORTANCE = 9
FACT_IMPORTANCE = 7
ACHIEVEMENT_IMPORTANCE = 9

CAREER_TAGS = [
    "resume", "interview", "career", "job", "skill", "experience", "leadership",
    "strategy", "ai", "product", "management", "startup", "funding", "mentor",
]

TOPIC_KEYWORDS: Dict[str, List[str]] = {
    "resume": ["resume", "cv", "curriculum vitae"],
    "interview": ["interview", "interview preparation", "interview question"],
    "career strategy": ["career strategy", "career planning", "career goal"],
    "job search": ["job search", "job hunting", "job application"],
    "networking": ["networking", "professional network", "linkedin"],
    "skills": ["skills", "skill development", "competency"],
    "leadership": ["leadership", "team management", "leading"],
    "personal brand": ["personal brand", "professional image", "online presence"],
}

ACHIEVEMENT_KEYWORDS = [
    "achieved", "accomplished", "successfully", "led", "managed", "increased",
    "decreased", "improved", "launched", "delivered", "won", "earned",
]

SKILL_KEYWORDS = [
    "AI", "machine learning", "product management", "leadership", "strategy",
    "python", "javascript", "react", "node.js", "sql", "mongodb",
    "project management", "team management", "data analysis", "UX design",
]

_GOAL_RE = re.compile(r"(?:want to become|goal is to|aiming to|planning to)\s+([^.!?]+)", re.I)
_ROLE_RE = re.compile(r"(?:currently work|current role|working as)\s+(?:as\s+)?([^.!?]+)", re.I)
_COMPANY_RE = re.compile(r"(?:work at|company is|employed by)\s+([^.!?]+)", re.I)
_EXPERIENCE_RE = re.compile(r"(\d+)\s+years?\s+of\s+experience", re.I)
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")

_INSIGHT_GOAL_PATTERNS = [
    re.compile(r"(?:want to|goal is to|aiming to|planning to|hoping to)\s+([^.!?]+)", re.I),
    re.compile(r"(?:my goal|objective|target)\s+(?:is\s+)?(?:to\s+)?([^.!?]+)", re.I),
]
_INSIGHT_PREFERENCE_PATTERNS = [
    re.compile(r"(?:prefer|like|enjoy|interested in)\s+([^.!?]+)", re.I),
    re.compile(r"(?:don't like|dislike|avoid|not interested in)\s+([^.!?]+)", re.I),
]
_INSIGHT_ACHIEVEMENT_PATTERNS = [
    re.compile(
        r"(?:achieved|accomplished|delivered|launched|built|led|managed|increased|grew)\s+([^.!?]+)",
        re.I,
    ),
    re.compile(r"(?:successful|successfully)\s+([^.!?]+)", re.I),
]


# ---------------------------------------------------------------------------
# Per-turn extractors used by the conversation manager
# ---------------------------------------------------------------------------

def extract_preferences(user_message: str, assistant_response: str) -> List[str]:
    content = f"{user_message} {assistant_response}".lower()
    preferences = []

    # Communication style
    if "prefer direct" in content or "be direct" in content:
        preferences.append("User prefers direct communication style")
    if "prefer detailed" in content or "more detail" in content:
        preferences.append("User prefers detailed explanations")

    # Work environment
    if "remote work" in content or "work from home" in content:
        preferences.append("User prefers remote work opportunities")
    if "startup" in content and "prefer" in content:
        preferences.append("User prefers startup environment")

    return preferences


def extract_goals(user_message: str, assistant_response: str) -> List[str]:
    content = f"{user_message} {assistant_response}".lower()
    goals = []

    if "want to become" in content or "goal is to" in content:
        match = _GOAL_RE.search(content)
        if match:
            goals.append(f"Career goal: {match.group(1).strip()}")

    if "interview" in content and ("prepare" in content or "practice" in content):
        goals.append("Goal: Improve interview performance")

    if "resume" in content and ("improve" in content or "optimize" in content):
        goals.append("Goal: Optimize resume for better results")

    return goals


def extract_facts(user_message: str) -> List[str]:
    """Role, company and years of experience stated by the user."""
    content = user_message.lower()
    facts = []

    if "currently work" in content or "my current role" in content:
        match = _ROLE_RE.search(content)
        if match:
            facts.append(f"Current role: {match.group(1).strip()}")

    if "work at" in content or "company is" in content:
        match = _COMPANY_RE.search(content)
        if match:
            facts.append(f"Current company: {match.group(1).strip()}")

    if "years of experience" in content or "been working for" in content:
        match = _EXPERIENCE_RE.search(content)
        if match:
            facts.append(f"Experience: {match.group(1)} years in the field")

    return facts


def extract_achievements(user_message: str) -> List[str]:
    """Sentences of the user message that mention an accomplishment (at most 3)."""
    content = user_message.lower()
    sentences = _SENTENCE_SPLIT_RE.split(user_message)
    achievements: List[str] = []

    for keyword in ACHIEVEMENT_KEYWORDS:
        if keyword not in content:
            continue
        for sentence in sentences:
            if keyword in sentence.lower() and len(sentence.strip()) > 20:
                achievements.append(f"Achievement: {sentence.strip()}")

    # dict.fromkeys keeps first-seen order
    return list(dict.fromkeys(achievements))[:3]


def extract_topics(user_message: str, assistant_response: str) -> List[str]:
    content = f"{user_message} {assistant_response}".lower()
    return [
        topic
        for topic, keywords in TOPIC_KEYWORDS.items()
        if any(keyword in content for keyword in keywords)
    ]


def extract_tags(content: str) -> List[str]:
    """Career vocabulary words present in *content*."""
    lowered = content.lower()
    return [tag for tag in CAREER_TAGS if tag in lowered]


def merge_summary(current: str, topics: List[str], max_chars: int = 500) -> str:
    """
    Append ``Discussed: <topics>`` to a running session summary, keeping
    only the last *max_chars* characters.
    """
    summary = current or ""
    if topics:
        topics_text = ", ".join(topics)
        summary = f"{summary}; Discussed: {topics_text}" if summary else f"Discussed: {topics_text}"
    if len(summary) > max_chars:
        summary = summary[-max_chars:]
    return summary


def extract_turn_memories(user_message: str, assistant_response: str) -> List[MemoryInsight]:
    """All memories worth storing after one chat turn."""
    insights: List[MemoryInsight] = []
    for content in extract_preferences(user_message, assistant_response):
        insights.append(MemoryInsight(MemoryType.PREFERENCE.value, content, PREFERENCE_IMPORTANCE))
    for content in extract_goals(user_message, assistant_response):
        insights.append(MemoryInsight(MemoryType.GOAL.value, content, GOAL_IMPORTANCE))
    for content in extract_facts(user_message):
        insights.append(MemoryInsight(MemoryType.FACT.value, content, FACT_IMPORTANCE))
    for content in extract_achievements(user_message):
        insights.append(MemoryInsight(MemoryType.ACHIEVEMENT.value, content, ACHIEVEMENT_IMPORTANCE))
    return insights


# ---------------------------------------------------------------------------
# Pattern-based insight preview
# ---------------------------------------------------------------------------

def extract_insights(user_message: str, assistant_response: str = "") -> List[MemoryInsight]:
    """
    Broader regex scan of a user message: goal, preference and achievement
    phrases plus skills mentioned anywhere in the turn.
    """
    insights: List[MemoryInsight] = []

    for pattern in _INSIGHT_GOAL_PATTERNS:
        for match in pattern.finditer(user_message):
            insights.append(
                MemoryInsight(
                    MemoryType.GOAL.value, match.group(0).strip(), 9, ["career_planning", "objectives"]
                )
            )

    for pattern in _INSIGHT_PREFERENCE_PATTERNS:
        for match in pattern.finditer(user_message):
            insights.append(
                MemoryInsight(
                    MemoryType.PREFERENCE.value, match.group(0).strip(), 7, ["preferences", "personality"]
                )
            )

    for pattern in _INSIGHT_ACHIEVEMENT_PATTERNS:
        for match in pattern.finditer(user_message):
            if len(match.group(0)) > 20:
                insights.append(
                    MemoryInsight(
                        MemoryType.ACHIEVEMENT.value,
                        match.group(0).strip(),
                        8,
                        ["accomplishments", "experience"],
                    )
                )

    content = f"{user_message} {assistant_response}".lower()
    for skill in SKILL_KEYWORDS:
        if skill.lower() in content:
            insights.append(
                MemoryInsight(
                    MemoryType.SKILL.value,
                    f"Has experience with {skill}",
                    6,
                    ["skills", "expertise", "technical"],
                )
            )

    return insights
