"""
Rule-based insight generator.

Turns the rolling window of recent check-ins into a short observational
preamble plus a ranked list of suggestions.  The rules are a transparent
heuristic, applied in a fixed order:

  1. Mood band        (<4 lower, >7 positive, otherwise stable)
  2. Sleep duration   (<7 h more rest, >9 h informational only)
  3. Sleep quality    (<3, only when a quality average exists)
  4. Dominant sleep disturbance over the window ("None" excluded)

Suggestions keep the order the rules produced them and are capped at
MAX_SUGGESTIONS.  Below MIN_ENTRIES_FOR_INSIGHTS entries no rule runs.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from analytics.rolling_stats import InsufficientData, RollingStats, StatsResult, rolling_stats
from constants import (
    DEFAULT_WINDOW,
    HIGH_MOOD,
    LONG_SLEEP,
    LOW_MOOD,
    LOW_SLEEP_QUALITY,
    MAX_SUGGESTIONS,
    NO_DISTURBANCE,
    SHORT_SLEEP,
)
from wellness_entry import WellnessEntry

log = logging.getLogger("insight_generator")

KEEP_TRACKING_MESSAGE = "Track your mood for a few more days to get personalized insights!"
SUGGESTIONS_HEADER = "\n\nHere are some personalized suggestions:\n• "

LOW_MOOD_CLAUSE = "I notice you've been experiencing lower moods recently. "
POSITIVE_MOOD_CLAUSE = "Your mood has been quite positive lately! "
STABLE_MOOD_CLAUSE = "Your mood has been relatively stable. "
SHORT_SLEEP_CLAUSE = "Your sleep pattern suggests you might benefit from more rest. "
LONG_SLEEP_CLAUSE = "You're getting plenty of sleep, which is great for mental health. "
LOW_QUALITY_CLAUSE = "Your sleep quality has been on the low side. "
DISTURBANCE_CLAUSE = "Your most frequent sleep disturbance has been {tag}. "

LOW_MOOD_SUGGESTIONS = [
    "Consider talking to a trusted friend or counselor",
    "Try a 10-minute daily walk in nature",
]
POSITIVE_MOOD_SUGGESTIONS = ["Keep up the activities that bring you joy"]
STABLE_MOOD_SUGGESTIONS = ["Maintain your current self-care routine"]
MORE_REST_SUGGESTIONS = ["Aim for 7-9 hours of sleep by heading to bed a little earlier"]
LOW_QUALITY_SUGGESTIONS = [
    "Establish a consistent bedtime routine",
    "Limit screen time 1 hour before bed",
]
DISTURBANCE_SUGGESTIONS = {
    "Stress/Anxiety": "Try a relaxation technique such as deep breathing before sleep",
    "Noise": "Consider earplugs or a white noise machine",
}


@dataclass
class InsightReport:
    text: str
    clauses: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    dominant_disturbance: Optional[str] = None
    stats: Optional[StatsResult] = None

    @property
    def sufficient(self) -> bool:
        return isinstance(self.stats, RollingStats)


def dominant_disturbance(entries: Sequence[WellnessEntry]) -> Optional[str]:
    """Most frequent disturbance tag, ties broken by first appearance.

    Tags are collected newest entry first, in each entry's own order.
    """
    collected = [
        tag
        for entry in entries
        for tag in entry.sleep_disturbances
        if tag != NO_DISTURBANCE
    ]
    if not collected:
        return None
    counts = Counter(collected)
    best = max(counts.values())
    for tag in collected:
        if counts[tag] == best:
            return tag
    return None


class InsightGenerator:
    """Builds the analysis text shown after each check-in."""

    def __init__(self, window_size: int = DEFAULT_WINDOW, max_suggestions: int = MAX_SUGGESTIONS):
        self.window_size = window_size
        self.max_suggestions = max_suggestions

    def build_report(
        self,
        entries: Sequence[WellnessEntry],
        stats: Optional[StatsResult] = None,
    ) -> InsightReport:
        """Apply the rules to newest-first entries (stats computed if omitted)."""
        if stats is None:
            stats = rolling_stats(entries, self.window_size)
        if isinstance(stats, InsufficientData):
            return InsightReport(text=KEEP_TRACKING_MESSAGE, stats=stats)

        clauses: List[str] = []
        suggestions: List[str] = []

        # 1. Mood band
        if stats.avg_mood < LOW_MOOD:
            clauses.append(LOW_MOOD_CLAUSE)
            suggestions.extend(LOW_MOOD_SUGGESTIONS)
        elif stats.avg_mood > HIGH_MOOD:
            clauses.append(POSITIVE_MOOD_CLAUSE)
            suggestions.extend(POSITIVE_MOOD_SUGGESTIONS)
        else:
            clauses.append(STABLE_MOOD_CLAUSE)
            suggestions.extend(STABLE_MOOD_SUGGESTIONS)

        # 2. Sleep duration
        if stats.avg_sleep_hours < SHORT_SLEEP:
            clauses.append(SHORT_SLEEP_CLAUSE)
            suggestions.extend(MORE_REST_SUGGESTIONS)
        elif stats.avg_sleep_hours > LONG_SLEEP:
            clauses.append(LONG_SLEEP_CLAUSE)

        # 3. Sleep quality
        if stats.avg_sleep_quality is not None and stats.avg_sleep_quality < LOW_SLEEP_QUALITY:
            clauses.append(LOW_QUALITY_CLAUSE)
            suggestions.extend(LOW_QUALITY_SUGGESTIONS)

        # 4. Dominant disturbance
        top = dominant_disturbance(entries[: stats.window])
        if top is not None:
            clauses.append(DISTURBANCE_CLAUSE.format(tag=top))
            if top in DISTURBANCE_SUGGESTIONS:
                suggestions.append(DISTURBANCE_SUGGESTIONS[top])

        suggestions = suggestions[: self.max_suggestions]
        text = "".join(clauses) + SUGGESTIONS_HEADER + "\n• ".join(suggestions)
        log.debug(
            "Insight over %d entries: mood=%.2f sleep=%.2f -> %d suggestions",
            stats.window, stats.avg_mood, stats.avg_sleep_hours, len(suggestions),
        )
        return InsightReport(
            text=text,
            clauses=clauses,
            suggestions=suggestions,
            dominant_disturbance=top,
            stats=stats,
        )

    def generate_analysis(self, entries: Sequence[WellnessEntry], stats: Optional[StatsResult] = None) -> str:
        return self.build_report(entries, stats).text
