"""Word-set (Jaccard) comparison of two texts."""

import re

from docflow.application.ports import ComparisonOutcome

MIN_WORD_LENGTH = 4

_NUMBERED_SECTION = re.compile(r"^\d+\.[ \t]*[A-Z][^.\n]*$", re.MULTILINE)
_UPPER_HEADER = re.compile(r"^[A-Z][A-Z ]{2,}$", re.MULTILINE)


def words(text: str) -> set[str]:
    """Lowercased whitespace-separated words of at least four characters."""
    return {w for w in text.lower().split() if len(w) >= MIN_WORD_LENGTH}


def jaccard(a: set[str], b: set[str]) -> float:
    union = a | b
    return len(a & b) / len(union) if union else 0.0


def find_sections(text: str) -> list[str]:
    """Numbered headings ("1. Definitions") and all-caps header lines, in order."""
    found = [m.group(0).strip() for m in _NUMBERED_SECTION.finditer(text)]
    found += [m.group(0).strip() for m in _UPPER_HEADER.finditer(text)]
    return list(dict.fromkeys(found))


def interpret(score: float) -> str:
    if score > 0.8:
        return "very similar"
    if score > 0.6:
        return "similar"
    if score > 0.4:
        return "somewhat similar"
    if score > 0.2:
        return "different"
    return "very different"


class WordSetComparer:
    """DocumentComparer using word-set overlap plus simple text statistics."""

    def compare(self, text1: str, text2: str) -> ComparisonOutcome:
        words1, words2 = words(text1), words(text2)
        score = round(jaccard(words1, words2), 4)
        wc1, wc2 = len(text1.split()), len(text2.split())

        differences = []
        if wc1 != wc2:
            differences.append(f"Word count: {wc1} vs {wc2} ({wc1 - wc2:+d})")
        if len(text1) != len(text2):
            differences.append(
                f"Character count: {len(text1)} vs {len(text2)} ({len(text1) - len(text2):+d})"
            )
        sections1, sections2 = find_sections(text1), find_sections(text2)
        differences += [f"Section only in first document: {s}" for s in sections1 if s not in sections2]
        differences += [f"Section only in second document: {s}" for s in sections2 if s not in sections1]

        suggestions = []
        only1, only2 = len(words1 - words2), len(words2 - words1)
        if score < 0.4:
            suggestions.append("Documents differ substantially; review them in full.")
        if only2:
            suggestions.append(f"Review {only2} terms that appear only in the second document.")
        if only1:
            suggestions.append(f"Check {only1} terms from the first document missing in the second.")

        summary = (
            f"Documents are {interpret(score)} (word overlap {score:.0%}, "
            f"{len(words1 & words2)} shared terms)."
        )
        return ComparisonOutcome(
            similarity_score=score,
            summary=summary,
            key_differences=differences,
            suggestions=suggestions,
        )
