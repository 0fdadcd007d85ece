from nltk.stem import PorterStemmer

from keyword_categorizer.matching.text import contains_hebrew


class Stemmer:
    """Porter stemmer for English tokens; other scripts pass through lowercased."""

    def __init__(self) -> None:
        self._porter = PorterStemmer()

    def stem(self, word: str) -> str:
        lowered = word.lower()
        if not lowered or contains_hebrew(lowered):
            return lowered
        return self._porter.stem(lowered)
