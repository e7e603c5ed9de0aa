"""
Cross-source team name reconciliation.

The seed provider (KenPom) names are canonical: "Duke", "Ohio St.",
"Saint Mary's". ESPN and The Odds API append mascots and spell things out:
"Duke Blue Devils", "Ohio State Buckeyes", "Saint Mary's Gaels".

Two lookups live here:

- ``TeamNameReconciler.match_name`` / ``find_matching_game`` locate a
  known team inside a provider payload (odds snapshots). Tiers, in order:
  1. override alias for the provider (case-insensitive equality)
  2. case-insensitive equality
  3. case-insensitive substring, either direction
  4. candidate starts with ``name + " "``
  Ties resolve to the first candidate in payload order.

- ``resolve_canonical`` maps a provider name back to a rating key:
  override binding, exact, case-insensitive, normalized (mascot stripped,
  State/Saint -> St.), then word-set match.

``OverrideTable`` is loaded from the override store at the start of each
batch and passed in; nothing here caches it.
"""
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from rapidfuzz import fuzz, process

from powerratings.services.ratings.constants import MASCOTS
from powerratings.services.ratings.types import Provider

_MASCOT_PATTERN = re.compile(
    r"\s+(" + "|".join(re.escape(m) for m in sorted(MASCOTS, key=len, reverse=True)) + r")$",
    re.IGNORECASE,
)


# =============================================================================
# OVERRIDE TABLE
# =============================================================================

@dataclass(frozen=True)
class OverrideBinding:
    """One external spelling bound to one canonical team."""
    source_name: str
    canonical_name: str
    espn_name: Optional[str] = None
    odds_api_name: Optional[str] = None
    sbr_name: Optional[str] = None

    def alias_for(self, provider: Provider) -> Optional[str]:
        return {
            Provider.ODDS_API: self.odds_api_name,
            Provider.ESPN: self.espn_name,
            Provider.SBR: self.sbr_name,
        }[Provider(provider)]


class OverrideTable:
    """
    Typed view over the override store.

    Each external ``source_name`` has at most one binding (compared
    case-insensitively); binding it again replaces the previous binding.
    """

    def __init__(self, bindings: Iterable[OverrideBinding] = ()):
        self._bindings: Dict[str, OverrideBinding] = {}
        for binding in bindings:
            self.bind(binding)

    @classmethod
    def from_records(cls, records) -> "OverrideTable":
        """Build from ``TeamOverride`` rows (or anything with the same attributes)."""
        return cls(
            OverrideBinding(
                source_name=r.source_name,
                canonical_name=r.canonical_name,
                espn_name=r.espn_name,
                odds_api_name=r.odds_api_name,
                sbr_name=r.sbr_name,
            )
            for r in records
        )

    def bind(self, binding: OverrideBinding) -> Optional[OverrideBinding]:
        """Add a binding; returns the binding it replaced, if any."""
        key = binding.source_name.lower()
        previous = self._bindings.get(key)
        self._bindings[key] = binding
        return previous

    def __len__(self) -> int:
        return len(self._bindings)

    def __iter__(self):
        return iter(self._bindings.values())

    def get(self, source_name: str) -> Optional[OverrideBinding]:
        return self._bindings.get(source_name.lower())

    def canonical_for(self, external_name: str) -> Optional[str]:
        """Canonical team for an external spelling (source name or any provider alias)."""
        if not external_name:
            return None
        binding = self.get(external_name)
        if binding is not None:
            return binding.canonical_name
        lower = external_name.lower()
        for binding in self._bindings.values():
            aliases = (binding.espn_name, binding.odds_api_name, binding.sbr_name)
            if any(a and a.lower() == lower for a in aliases):
                return binding.canonical_name
        return None

    def alternate_for(self, name: str, provider: Provider) -> Optional[str]:
        """
        The spelling ``provider`` uses for ``name``.

        ``name`` may be the external source name, the ESPN spelling or the
        canonical name. Source-name bindings take precedence.
        """
        if not name:
            return None
        binding = self.get(name)
        if binding is not None and binding.alias_for(provider):
            return binding.alias_for(provider)

        lower = name.lower()
        for binding in self._bindings.values():
            alias = binding.alias_for(provider)
            if not alias:
                continue
            if (binding.espn_name and binding.espn_name.lower() == lower) or binding.canonical_name.lower() == lower:
                return alias
        return None


# =============================================================================
# PAYLOAD MATCHING
# =============================================================================

class TeamNameReconciler:
    """
    Locate teams in a provider payload.

    Example:
        reconciler = TeamNameReconciler(override_table)
        game = reconciler.find_matching_game("Duke", "North Carolina", odds_games)
    """

    def __init__(self, overrides: Optional[OverrideTable] = None):
        self.overrides = overrides or OverrideTable()

    def match_tier(self, name: str, candidate: str, provider: Provider = Provider.ODDS_API) -> Optional[int]:
        """Tier (1-4) at which ``candidate`` matches ``name``, or None."""
        if not name or not candidate:
            return None
        name_lower = name.lower()
        candidate_lower = candidate.lower()

        alias = self.overrides.alternate_for(name, provider)
        if alias and alias.lower() == candidate_lower:
            return 1
        if candidate_lower == name_lower:
            return 2
        if name_lower in candidate_lower or candidate_lower in name_lower:
            return 3
        if candidate_lower.startswith(name_lower + " "):
            return 4
        return None

    def match_name(
        self,
        name: str,
        candidates: Sequence[str],
        provider: Provider = Provider.ODDS_API,
    ) -> Optional[str]:
        """Best candidate for ``name``: lowest tier wins, payload order breaks ties."""
        best: Optional[Tuple[int, str]] = None
        for candidate in candidates:
            tier = self.match_tier(name, candidate, provider)
            if tier is None:
                continue
            if best is None or tier < best[0]:
                best = (tier, candidate)
                if tier == 1:
                    break
        return best[1] if best else None

    def find_matching_game(
        self,
        home_team: str,
        away_team: str,
        payload_games: Sequence[dict],
        provider: Provider = Provider.ODDS_API,
    ) -> Optional[dict]:
        """First payload game whose home and away sides both match."""
        for game in payload_games:
            if self.match_tier(home_team, game.get("home_team") or "", provider) is None:
                continue
            if self.match_tier(away_team, game.get("away_team") or "", provider) is None:
                continue
            return game
        return None


# =============================================================================
# CANONICAL RESOLUTION
# =============================================================================

def normalize_team_name(name: str) -> str:
    """
    Normalize a team name for comparison.

    Examples:
        >>> normalize_team_name("Ohio State Buckeyes")
        'ohio st.'
        >>> normalize_team_name("Saint Mary's Gaels")
        "st. mary's"
    """
    normalized = _MASCOT_PATTERN.sub("", name.lower().strip())
    normalized = re.sub(r"\s+", " ", normalized).strip()
    normalized = re.sub(r"\bstate\b", "st.", normalized)
    normalized = re.sub(r"\bsaint\b", "st.", normalized)
    normalized = re.sub(r"\.+$", "", normalized)
    normalized = re.sub(r"\bst\b(?!\.)", "st.", normalized)
    return normalized.strip()


def significant_words(name: str) -> List[str]:
    cleaned = _MASCOT_PATTERN.sub("", name.lower()).strip()
    cleaned = re.sub(r"\bstate\b", "st", cleaned)
    cleaned = re.sub(r"\bst\.", "st", cleaned)
    cleaned = re.sub(r"\bsaint\b", "st", cleaned)
    cleaned = re.sub(r"[.']", "", cleaned)
    return cleaned.split()


def words_match(left: List[str], right: List[str]) -> bool:
    """
    Same number of words, same "St." status, and every word of ``left``
    equals or shares a prefix (3+ chars) with some word of ``right``.
    """
    if not left or not right or len(left) != len(right):
        return False
    if ("st" in left) != ("st" in right):
        return False
    for word in left:
        if not any(
            other == word
            or (len(other) >= 3 and len(word) >= 3 and (other.startswith(word) or word.startswith(other)))
            for other in right
        ):
            return False
    return True


def resolve_canonical(
    external_name: str,
    rating_keys: Iterable[str],
    overrides: Optional[OverrideTable] = None,
) -> Optional[str]:
    """Rating key for a provider's team name, or None when nothing fits."""
    if not external_name:
        return None
    keys = list(rating_keys)
    key_set = set(keys)

    if overrides is not None:
        bound = overrides.canonical_for(external_name)
        if bound and bound in key_set:
            return bound

    if external_name in key_set:
        return external_name

    lower = external_name.lower()
    for key in keys:
        if key.lower() == lower:
            return key

    normalized = normalize_team_name(external_name)
    for key in keys:
        if normalize_team_name(key) == normalized:
            return key

    words = significant_words(external_name)
    if not words:
        return None
    for key in keys:
        if words_match(words, significant_words(key)):
            return key
    return None


def suggest_canonical(name: str, rating_keys: Iterable[str], limit: int = 5) -> List[Tuple[str, float]]:
    """
    Rank canonical names by fuzzy similarity to ``name``.

    Only used to help an operator write an override; automatic matching
    never relies on it.
    """
    if not name:
        return []
    keys = list(rating_keys)
    by_normalized = {normalize_team_name(k): k for k in keys}
    results = process.extract(
        normalize_team_name(name),
        list(by_normalized.keys()),
        scorer=fuzz.WRatio,
        limit=limit,
    )
    return [(by_normalized[choice], round(score, 1)) for choice, score, _ in results]
