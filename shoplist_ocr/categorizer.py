"""
Item categorization - vocabulary lookup with rule and fuzzy fallbacks.

A name runs through a fixed list of tiers and the first hit wins:

    ExactHit  - canonical or synonym found verbatim          confidence 1.0
    RuleHit   - normalized name contains a rule token        confidence 0.6
    FuzzyHit  - closest vocabulary term within threshold     confidence 0.8
    Fallback  - "other"                                       confidence 0.3

Exact and fuzzy hits display the vocabulary's canonical spelling; rule hits
and fallbacks keep the caller's spelling. Because exact hits resolve to a
canonical that is itself indexed, categorizing a result's canonical name
again always lands in the same category.
"""

from dataclasses import dataclass
from typing import List, Dict, Optional, Tuple, Union, Sequence

from rapidfuzz import process
from rapidfuzz.distance import Levenshtein

from .config import (
    EXACT_CONFIDENCE,
    FUZZY_CONFIDENCE,
    RULE_CONFIDENCE,
    FALLBACK_CONFIDENCE,
    FUZZY_THRESHOLD,
)
from .core.utils import CategorizedName, NormalizedName
from .grocery_vocab import VocabEntry, TokenRule, VOCABULARY, TOKEN_RULES
from .line_parser import normalize_name


# =============================================================================
# Cascade Results
# =============================================================================

@dataclass(frozen=True)
class ExactHit:
    entry: VocabEntry


@dataclass(frozen=True)
class RuleHit:
    rule: TokenRule
    token: str


@dataclass(frozen=True)
class FuzzyHit:
    entry: VocabEntry
    term: str
    score: float  # normalized edit distance, lower is closer


@dataclass(frozen=True)
class Fallback:
    pass


CascadeHit = Union[ExactHit, RuleHit, FuzzyHit, Fallback]


# =============================================================================
# Index
# =============================================================================

class CategorizationIndex:
    """Immutable lookup structures built once from a vocabulary.

    Build one per process and pass it to whatever needs to categorize;
    nothing here mutates after __init__.
    """

    def __init__(
        self,
        vocabulary: Sequence[VocabEntry] = VOCABULARY,
        token_rules: Sequence[TokenRule] = TOKEN_RULES,
        fuzzy_threshold: float = FUZZY_THRESHOLD,
        ocr_fixes: Optional[Dict[str, str]] = None
    ):
        self.vocabulary: Tuple[VocabEntry, ...] = tuple(vocabulary)
        self.token_rules: Tuple[TokenRule, ...] = tuple(token_rules)
        self.fuzzy_threshold = fuzzy_threshold
        self.ocr_fixes = ocr_fixes

        exact: Dict[str, VocabEntry] = {}
        fuzzy_terms: List[str] = []
        fuzzy_entries: List[VocabEntry] = []

        for entry in self.vocabulary:
            for term in entry.terms():
                existing = exact.get(term)
                if existing is not None and existing is not entry:
                    raise ValueError(
                        f"Vocabulary term '{term}' is claimed by both "
                        f"'{existing.canonical}' and '{entry.canonical}'"
                    )
                exact[term] = entry
                fuzzy_terms.append(term)
                fuzzy_entries.append(entry)

        self._exact = exact
        self._fuzzy_terms = tuple(fuzzy_terms)
        self._fuzzy_entries = tuple(fuzzy_entries)

        print(f"[Categorize] Indexed {len(exact)} terms from {len(self.vocabulary)} vocabulary entries")

    def __len__(self) -> int:
        return len(self._exact)

    def lookup(self, term: str) -> Optional[VocabEntry]:
        """Exact vocabulary lookup of an already-lowercased term."""
        return self._exact.get(" ".join(term.lower().split()))

    # -------------------------------------------------------------------------
    # Tiers
    # -------------------------------------------------------------------------

    def match_exact(self, names: NormalizedName) -> Optional[ExactHit]:
        entry = self.lookup(names.canonical_name) or self.lookup(names.normalized_name)
        return ExactHit(entry) if entry else None

    def match_rule(self, names: NormalizedName) -> Optional[RuleHit]:
        for rule in self.token_rules:
            for token in rule.tokens:
                if token in names.normalized_name:
                    return RuleHit(rule, token)
        return None

    def match_fuzzy(self, names: NormalizedName) -> Optional[FuzzyHit]:
        if not names.normalized_name or not self._fuzzy_terms:
            return None

        best = process.extractOne(
            names.normalized_name,
            self._fuzzy_terms,
            scorer=Levenshtein.normalized_distance,
            score_cutoff=self.fuzzy_threshold
        )
        if best is None:
            return None

        term, score, position = best
        return FuzzyHit(self._fuzzy_entries[position], term, score)

    def classify(self, name: str) -> Tuple[NormalizedName, CascadeHit]:
        """Run the tiers in order and return the first hit."""
        names = normalize_name(name, self.ocr_fixes)
        for tier in (self.match_exact, self.match_rule, self.match_fuzzy):
            hit = tier(names)
            if hit is not None:
                return names, hit
        return names, Fallback()


# =============================================================================
# Public API
# =============================================================================

def resolve_hit(names: NormalizedName, hit: CascadeHit) -> CategorizedName:
    """Turn a cascade hit into the categorization record."""
    if isinstance(hit, ExactHit):
        return CategorizedName(
            canonical_name=hit.entry.canonical,
            normalized_name=names.normalized_name,
            category_id=hit.entry.category,
            subcategory_id=hit.entry.subcategory,
            confidence=EXACT_CONFIDENCE,
            order_hint=hit.entry.order_hint
        )

    if isinstance(hit, RuleHit):
        return CategorizedName(
            canonical_name=names.canonical_name,
            normalized_name=names.normalized_name,
            category_id=hit.rule.category_id,
            subcategory_id=hit.rule.subcategory_id,
            confidence=RULE_CONFIDENCE,
            order_hint=None
        )

    if isinstance(hit, FuzzyHit):
        return CategorizedName(
            canonical_name=hit.entry.canonical,
            normalized_name=names.normalized_name,
            category_id=hit.entry.category,
            subcategory_id=hit.entry.subcategory,
            confidence=FUZZY_CONFIDENCE,
            order_hint=hit.entry.order_hint
        )

    return CategorizedName(
        canonical_name=names.canonical_name,
        normalized_name=names.normalized_name,
        category_id="other",
        subcategory_id=None,
        confidence=FALLBACK_CONFIDENCE,
        order_hint=None
    )


def categorize_item_name(name: str, index: CategorizationIndex) -> CategorizedName:
    """
    Categorize one item name.

    Args:
        name: Item name as written (already stripped of quantity/notes)
        index: Vocabulary index to match against

    Returns:
        CategorizedName with category, subcategory, confidence and order hint
    """
    names, hit = index.classify(name)
    return resolve_hit(names, hit)
