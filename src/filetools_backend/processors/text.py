"""Plain-text analysis and transformation."""

from __future__ import annotations

import math
import re
from collections import Counter
from typing import Any, Dict, List

WORD_CHARS = re.compile(r"[^a-zA-Z\u4e00-\u9fa5]")
CASE_TYPES = ("uppercase", "lowercase", "titlecase", "sentencecase", "camelcase", "pascalcase", "snakecase", "kebabcase")
SORT_TYPES = ("alphabetical", "numerical", "reverse-alphabetical", "reverse-numerical")
WORDS_PER_MINUTE = 200


def _words(text: str) -> List[str]:
    return text.split()


def count_words(text: str, include_spaces: bool = True, count_paragraphs: bool = True) -> Dict[str, Any]:
    """
    Word, character, paragraph and line statistics plus the ten most frequent words.

    Example:
        >>> count_words("one two\\n\\nthree")["words"]
        3
    """
    words = _words(text)
    sentences = [sentence for sentence in re.split(r"[.!?]+", text) if sentence.strip()]
    frequency = Counter(cleaned for cleaned in (WORD_CHARS.sub("", word.lower()) for word in words) if cleaned)
    no_spaces = len(re.sub(r"\s", "", text))

    result: Dict[str, Any] = {
        "words": len(words),
        "characters": len(text) if include_spaces else no_spaces,
        "charactersNoSpaces": no_spaces,
        "lines": len(text.split("\n")),
        "sentences": len(sentences),
        "avgWordsPerSentence": round(len(words) / len(sentences), 2) if sentences else 0,
        "avgCharsPerWord": round(no_spaces / len(words), 2) if words else 0,
        "topWords": [{"word": word, "count": count} for word, count in frequency.most_common(10)],
        "readingTime": math.ceil(len(words) / WORDS_PER_MINUTE),
    }
    if count_paragraphs:
        result["paragraphs"] = len([block for block in re.split(r"\n\s*\n", text) if block.strip()])
    return result


def count_characters(text: str, include_spaces: bool = True, include_newlines: bool = True) -> Dict[str, int]:
    counted = text if include_newlines else text.replace("\r", "").replace("\n", "")
    if not include_spaces:
        counted = re.sub(r"[ \t]", "", counted)
    return {
        "total": len(counted),
        "withSpaces": len(text),
        "withoutSpaces": len(re.sub(r"\s", "", text)),
        "letters": len(WORD_CHARS.sub("", text)),
        "numbers": len(re.sub(r"[^0-9]", "", text)),
        "punctuation": len(re.sub(r"[a-zA-Z0-9\s\u4e00-\u9fa5]", "", text)),
    }


def count_lines(text: str, count_empty_lines: bool = True) -> Dict[str, int]:
    lines = text.split("\n")
    non_empty = [line for line in lines if line.strip()]
    return {
        "total": len(lines) if count_empty_lines else len(non_empty),
        "nonEmpty": len(non_empty),
        "empty": len(lines) - len(non_empty),
    }


def _word_parts(text: str) -> List[str]:
    spaced = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", text)
    return [part for part in re.split(r"[^A-Za-z0-9\u4e00-\u9fa5]+", spaced) if part]


def convert_case(text: str, case_type: str) -> str:
    if case_type == "uppercase":
        return text.upper()
    if case_type == "lowercase":
        return text.lower()
    if case_type == "titlecase":
        return re.sub(r"\w\S*", lambda match: match.group(0)[0].upper() + match.group(0)[1:].lower(), text)
    if case_type == "sentencecase":
        lowered = text.lower()
        return re.sub(r"(^\s*|[.!?]\s+)(\w)", lambda match: match.group(1) + match.group(2).upper(), lowered)
    parts = _word_parts(text)
    if case_type == "camelcase":
        return "".join([parts[0].lower(), *(part.capitalize() for part in parts[1:])]) if parts else ""
    if case_type == "pascalcase":
        return "".join(part.capitalize() for part in parts)
    if case_type == "snakecase":
        return "_".join(part.lower() for part in parts)
    if case_type == "kebabcase":
        return "-".join(part.lower() for part in parts)
    raise ValueError(f"Unknown case type: {case_type}")


def format_text(text: str, remove_extra_spaces: bool = True, remove_empty_lines: bool = True, trim_lines: bool = True) -> str:
    lines = text.replace("\r\n", "\n").split("\n")
    if remove_extra_spaces:
        lines = [re.sub(r"[ \t]+", " ", line) for line in lines]
    if trim_lines:
        lines = [line.strip() for line in lines]
    if remove_empty_lines:
        lines = [line for line in lines if line.strip()]
    return "\n".join(lines).strip()


def reverse_text(text: str, reverse_type: str = "characters") -> str:
    if reverse_type == "words":
        return " ".join(reversed(text.split()))
    if reverse_type == "lines":
        return "\n".join(reversed(text.split("\n")))
    return text[::-1]


def _leading_number(line: str) -> float:
    match = re.match(r"\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?", line)
    return float(match.group(0)) if match else 0.0


def sort_lines(text: str, sort_type: str = "alphabetical", case_sensitive: bool = False) -> str:
    """
    Sort lines alphabetically or by their leading number.

    Lines without a leading number sort as 0, so they stay together.
    """
    lines = text.split("\n")
    descending = sort_type.startswith("reverse-")
    if sort_type.endswith("numerical"):
        ordered = sorted(lines, key=_leading_number, reverse=descending)
    else:
        ordered = sorted(lines, key=(lambda line: line) if case_sensitive else str.casefold, reverse=descending)
    return "\n".join(ordered)


def remove_duplicates(text: str, case_sensitive: bool = False, keep_first: bool = True) -> str:
    """
    Drop repeated lines, keeping the first occurrence's position.

    With ``keep_first`` off the surviving line takes the text of the last
    occurrence (relevant when matching ignores case).
    """
    result: List[str] = []
    positions: Dict[str, int] = {}
    for line in text.split("\n"):
        key = line if case_sensitive else line.lower()
        if key not in positions:
            positions[key] = len(result)
            result.append(line)
        elif not keep_first:
            result[positions[key]] = line
    return "\n".join(result)


def compare_texts(first: str, second: str, ignore_whitespace: bool = False, ignore_case: bool = False) -> Dict[str, Any]:
    """Line-by-line comparison of two texts."""

    def normalize(line: str) -> str:
        if ignore_whitespace:
            line = " ".join(line.split())
        return line.lower() if ignore_case else line

    lines_a, lines_b = first.split("\n"), second.split("\n")
    differences = []
    for index in range(max(len(lines_a), len(lines_b))):
        line_a = lines_a[index] if index < len(lines_a) else ""
        line_b = lines_b[index] if index < len(lines_b) else ""
        if normalize(line_a) != normalize(line_b):
            change = "added" if line_a == "" else "removed" if line_b == "" else "modified"
            differences.append({"lineNumber": index + 1, "text1": line_a, "text2": line_b, "type": change})

    return {
        "identical": not differences,
        "differences": differences,
        "stats": {
            "totalLines1": len(lines_a),
            "totalLines2": len(lines_b),
            "changedLines": len(differences),
        },
    }
