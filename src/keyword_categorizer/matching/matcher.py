"""Keyword matching engine used to auto-categorize bank transactions.

Each keyword is tried against the transaction text with a series of
strategies, most specific first. The first candidate that survives context
validation wins for that keyword, and the per-keyword results are folded into
one aggregate confidence. Nothing in here raises on bad input: a transaction
that cannot be matched simply yields an empty result.
"""
import re
from collections.abc import Callable, Iterable
from pathlib import Path
from time import perf_counter

from keyword_categorizer.domain.keywords import normalize_keywords
from keyword_categorizer.logger import get_logger
from keyword_categorizer.matching.cache import RegexCache
from keyword_categorizer.matching.guard import FalsePositiveConfig, FalsePositiveGuard
from keyword_categorizer.matching.models import (
    BASE_CONFIDENCE,
    MATCH_TYPE_DESCRIPTIONS,
    MAX_CONFIDENCE,
    AggregateMatch,
    MatcherStats,
    MatchOptions,
    MatchResult,
    MatchType,
)
from keyword_categorizer.matching.stemmer import Stemmer
from keyword_categorizer.matching.text import contains_hebrew, extract_words, is_single_word

logger = get_logger(__name__)

NO_INPUT_REASONING = "No match: missing text or keywords"
NO_MATCH_REASONING = "No match: no valid keyword matches found"

# A Hebrew word ends where the Hebrew block and word characters end
_HEBREW_BOUNDARY = r"[\w\u0590-\u05FF]"


class KeywordMatcher:
    def __init__(
        self,
        guard: FalsePositiveGuard | None = None,
        stemmer: Stemmer | None = None,
        cache: RegexCache | None = None,
        options: MatchOptions | None = None,
    ):
        self.guard = guard or FalsePositiveGuard()
        self.stemmer = stemmer or Stemmer()
        self.regex_cache = cache if cache is not None else RegexCache()
        self.options = options or MatchOptions()
        self._stats = MatcherStats()

    def match_keywords(
        self,
        text: str | None,
        translated_text: str | None,
        keywords: Iterable[str] | str | None,
        options: MatchOptions | None = None,
    ) -> AggregateMatch:
        """Match every keyword against the text and score the combined evidence."""
        started = perf_counter()
        opts = options or self.options

        candidates = normalize_keywords(keywords)
        if not isinstance(text, str) or not text.strip() or not candidates:
            return AggregateMatch(reasoning=NO_INPUT_REASONING)

        self._stats.total_matches += 1

        matches: list[MatchResult] = []
        for keyword in candidates:
            match = self.find_best_match(text, translated_text, keyword, opts)
            if match.matched:
                matches.append(match)
                logger.debug(
                    "Keyword match found: %s -> %s (confidence: %.2f)",
                    keyword,
                    match.match_type.value,
                    match.confidence,
                )

        elapsed_ms = (perf_counter() - started) * 1000
        if not matches:
            return AggregateMatch(reasoning=NO_MATCH_REASONING, processing_time_ms=elapsed_ms)

        return AggregateMatch(
            matches=matches,
            confidence=self.calculate_overall_confidence(matches),
            reasoning=self.generate_reasoning(matches),
            match_type=matches[0].match_type,
            processing_time_ms=elapsed_ms,
        )

    def find_best_match(
        self,
        text: str,
        translated_text: str | None,
        keyword: str,
        options: MatchOptions | None = None,
    ) -> MatchResult:
        opts = options or self.options
        translated = translated_text if opts.use_translated_text and translated_text else None
        if translated == text:
            translated = None

        strategies: list[tuple[str, Callable[[], MatchResult]]] = []
        if not is_single_word(keyword):
            strategies.append(("exact_phrase", lambda: self.exact_phrase_match(text, keyword)))
            if translated:
                strategies.append(
                    ("exact_phrase[translated]", lambda: self.exact_phrase_match(translated, keyword))
                )
        strategies.append(("hebrew_word", lambda: self.hebrew_word_match(text, keyword)))
        strategies.append((
            "stemmed_word",
            lambda: self.stemmed_word_match(text, keyword, allow_variants=opts.enable_stemming),
        ))
        if translated:
            strategies.append((
                "stemmed_word[translated]",
                lambda: self.stemmed_word_match(translated, keyword, allow_variants=opts.enable_stemming),
            ))

        had_candidate = False
        for name, strategy in strategies:
            try:
                candidate = strategy()
            except Exception as e:
                logger.warning("Strategy %s failed for keyword '%s': %s", name, keyword, e)
                continue

            if not candidate.matched:
                continue

            had_candidate = True
            if self.validate_context(candidate, opts):
                self._record_match(candidate.match_type)
                return candidate
            logger.debug("Context rejected %s candidate for '%s' in '%s'", name, keyword, text)

        if had_candidate:
            self._stats.false_positives_blocked += 1
        return MatchResult.no_match(keyword, NO_MATCH_REASONING)

    def exact_phrase_match(self, text: str | None, phrase: str | None) -> MatchResult:
        """Case-insensitive whole-phrase search; the phrase may not touch word characters."""
        if not text or not phrase:
            return MatchResult.no_match(phrase)

        pattern = self.regex_cache.get(
            f"exact:{phrase}",
            lambda: re.compile(rf"(?<!\w){re.escape(phrase)}(?!\w)", re.IGNORECASE),
        )
        found = [m.group(0) for m in pattern.finditer(text)]
        if not found:
            return MatchResult.no_match(phrase)

        return MatchResult(
            matched=True,
            match_type=MatchType.EXACT_PHRASE,
            confidence=BASE_CONFIDENCE[MatchType.EXACT_PHRASE],
            matched_text=found[0],
            original_keyword=phrase,
            match_count=len(found),
            reasoning=f"'{phrase}' appears as a whole phrase",
        )

    def hebrew_word_match(self, text: str | None, keyword: str | None) -> MatchResult:
        if not text or not keyword:
            return MatchResult.no_match(keyword)
        if not contains_hebrew(text) or not contains_hebrew(keyword):
            return MatchResult.no_match(keyword)

        if self.guard.is_false_positive(text, keyword):
            self._stats.false_positives_blocked += 1
            logger.debug("Denylisted substring blocks '%s' in '%s'", keyword, text)
            return MatchResult.no_match(keyword, "denylisted substring in text")

        pattern = self.regex_cache.get(
            f"hebrew:{keyword}",
            lambda: re.compile(rf"(?<!{_HEBREW_BOUNDARY}){re.escape(keyword)}(?!{_HEBREW_BOUNDARY})"),
        )
        found = pattern.search(text)
        if not found:
            return MatchResult.no_match(keyword)

        return MatchResult(
            matched=True,
            match_type=MatchType.HEBREW_WORD,
            confidence=BASE_CONFIDENCE[MatchType.HEBREW_WORD],
            matched_text=found.group(0),
            original_keyword=keyword,
            match_count=1,
            reasoning=f"'{keyword}' appears as a whole Hebrew word",
        )

    def stemmed_word_match(
        self,
        text: str | None,
        keyword: str | None,
        allow_variants: bool = True,
    ) -> MatchResult:
        """Compare word stems; a verbatim word wins over a morphological variant."""
        if not text or not keyword:
            return MatchResult.no_match(keyword)

        if contains_hebrew(keyword) and self.guard.is_false_positive(text, keyword):
            return MatchResult.no_match(keyword, "denylisted substring in text")

        keyword_stem = self.stemmer.stem(keyword)
        variant: str | None = None
        for word in extract_words(text):
            if self.stemmer.stem(word) != keyword_stem:
                continue
            if not self.guard.is_valid_stemmed_match(word, keyword):
                self._stats.false_positives_blocked += 1
                logger.debug("Stem collision rejected: '%s' for keyword '%s'", word, keyword)
                continue
            if word.lower() == keyword.lower():
                return MatchResult(
                    matched=True,
                    match_type=MatchType.EXACT_WORD,
                    confidence=BASE_CONFIDENCE[MatchType.EXACT_WORD],
                    matched_text=word,
                    original_keyword=keyword,
                    match_count=1,
                    reasoning=f"'{keyword}' appears as a word",
                )
            if variant is None:
                variant = word

        if variant is None or not allow_variants:
            return MatchResult.no_match(keyword)

        return MatchResult(
            matched=True,
            match_type=MatchType.STEMMED_WORD,
            confidence=BASE_CONFIDENCE[MatchType.STEMMED_WORD],
            matched_text=variant,
            original_keyword=keyword,
            match_count=1,
            stem_used=keyword_stem,
            reasoning=f"'{variant}' shares the stem '{keyword_stem}' with '{keyword}'",
        )

    def validate_context(self, candidate: MatchResult, options: MatchOptions | None = None) -> bool:
        opts = options or self.options
        # Whole phrases stand on their own
        if candidate.match_type == MatchType.EXACT_PHRASE:
            return True
        keyword = candidate.original_keyword or ""
        return len(keyword) >= opts.min_keyword_length

    def calculate_overall_confidence(self, matches: list[MatchResult]) -> float:
        if not matches:
            return 0.0

        confidence = max(m.confidence for m in matches)

        if len(matches) > 1:
            confidence += 0.10
        if any(m.match_type == MatchType.EXACT_PHRASE for m in matches):
            confidence += 0.05
        avg_keyword_length = sum(len(m.original_keyword or "") for m in matches) / len(matches)
        if avg_keyword_length > 5:
            confidence += 0.05
        if len({m.match_type for m in matches}) > 1:
            confidence += 0.05

        return round(min(confidence, MAX_CONFIDENCE), 4)

    def generate_reasoning(self, matches: list[MatchResult]) -> str:
        if not matches:
            return NO_MATCH_REASONING
        descriptions = [
            f"{m.original_keyword or m.matched_text} "
            f"({MATCH_TYPE_DESCRIPTIONS.get(m.match_type, m.match_type.value)})"
            for m in matches
        ]
        return f"Found {len(matches)} keyword match(es): {', '.join(descriptions)}"

    def _record_match(self, match_type: MatchType) -> None:
        if match_type == MatchType.EXACT_PHRASE:
            self._stats.exact_phrase_matches += 1
        else:
            self._stats.stemmed_matches += 1

    def get_stats(self) -> MatcherStats:
        return self._stats.model_copy()

    def reset_stats(self) -> None:
        self._stats = MatcherStats()

    def clear_cache(self) -> None:
        self.regex_cache.clear()


def create_matcher(
    false_positives_path: str | Path | None = None,
    min_keyword_length: int = 3,
) -> KeywordMatcher:
    """Build a matcher with denylists from ``false_positives_path`` when given."""
    config = FalsePositiveConfig.load(false_positives_path) if false_positives_path else FalsePositiveConfig()
    return KeywordMatcher(
        guard=FalsePositiveGuard(config),
        options=MatchOptions(min_keyword_length=min_keyword_length),
    )
