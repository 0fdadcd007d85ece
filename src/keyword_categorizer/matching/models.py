from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

MAX_CONFIDENCE = 0.95


class MatchType(str, Enum):
    EXACT_PHRASE = "exact_phrase"
    EXACT_WORD = "exact_word"
    STEMMED_WORD = "stemmed_word"
    HEBREW_WORD = "hebrew_word"
    NONE = "none"


BASE_CONFIDENCE: dict[MatchType, float] = {
    MatchType.EXACT_PHRASE: 0.95,
    MatchType.EXACT_WORD: 0.85,
    MatchType.HEBREW_WORD: 0.85,
    MatchType.STEMMED_WORD: 0.75,
    MatchType.NONE: 0.0,
}

MATCH_TYPE_DESCRIPTIONS: dict[MatchType, str] = {
    MatchType.EXACT_PHRASE: "exact phrase",
    MatchType.EXACT_WORD: "exact word",
    MatchType.STEMMED_WORD: "word variation",
    MatchType.HEBREW_WORD: "Hebrew word",
}


class MatchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    matched: bool
    match_type: MatchType = MatchType.NONE
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    matched_text: str | None = None
    original_keyword: str | None = None
    reasoning: str = ""
    match_count: int = 0
    stem_used: str | None = None

    @classmethod
    def no_match(cls, keyword: str | None = None, reasoning: str = "not found") -> "MatchResult":
        return cls(matched=False, original_keyword=keyword, reasoning=reasoning)


class AggregateMatch(BaseModel):
    matches: list[MatchResult] = Field(default_factory=list)
    confidence: float = 0.0
    reasoning: str = ""
    match_type: MatchType = MatchType.NONE
    processing_time_ms: float = 0.0

    @property
    def has_matches(self) -> bool:
        return bool(self.matches)


class MatchOptions(BaseModel):
    min_keyword_length: int = 3
    use_translated_text: bool = True
    enable_stemming: bool = True


class MatcherStats(BaseModel):
    total_matches: int = 0
    exact_phrase_matches: int = 0
    stemmed_matches: int = 0
    false_positives_blocked: int = 0
