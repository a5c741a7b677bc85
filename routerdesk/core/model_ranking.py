# routerdesk/core/model_ranking.py
"""
Display order for model catalogs.

Models from several providers are shown base families first, newest
generation first, bare ids before their dated variants, and fine-tunes
last. Everything here is a pure function of its input.
"""
from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

FINE_TUNE_PREFIX = "ft:"
DEFAULT_FAMILIES: Tuple[str, ...] = ("gpt",)


@dataclass(frozen=True)
class ParsedModelId:
    identifier: str          # as given, e.g. "openai/gpt-4-0613"
    provider: Optional[str]  # "openai", or None when not namespaced
    raw: str                 # "gpt-4-0613"
    fine_tuned: bool
    family: str              # "gpt-4"
    version: str             # "0613"
    rank: float              # 4.0; 0 for unrecognized families


class RankingScheme:
    """
    Naming scheme the comparator recognizes.

    `families` are base names followed by a numeric generation, e.g. "gpt"
    covers gpt-5, gpt-4.1, gpt-3.5-turbo. Identifiers outside the scheme are
    kept whole as their family and rank 0.
    """

    def __init__(self, families: Iterable[str] = DEFAULT_FAMILIES):
        self.families = tuple(f.strip().lower() for f in families if f and f.strip())
        if self.families:
            bases = "|".join(re.escape(f) for f in self.families)
            self._family_re = re.compile(rf"^((?:{bases})-\d+(?:\.\d+)?(?:-[a-z]+)?)(?:-(.+))?$", re.IGNORECASE)
            self._generation_re = re.compile(rf"^(?:{bases})-(\d+(?:\.\d+)?)", re.IGNORECASE)
        else:
            self._family_re = None
            self._generation_re = None

    def split_family(self, model_id: str) -> Tuple[str, str]:
        """"gpt-4-1106-preview" -> ("gpt-4", "1106-preview"); unknown ids stay whole."""
        m = self._family_re.match(model_id) if self._family_re else None
        if m:
            return m.group(1), m.group(2) or ""
        return model_id, ""

    def family_rank(self, family: str) -> float:
        m = self._generation_re.match(family) if self._generation_re else None
        return float(m.group(1)) if m else 0.0

    def parse(self, identifier: str) -> ParsedModelId:
        # a leading ft: marks the whole id; only "provider/ft:..." is namespaced
        if identifier.startswith(FINE_TUNE_PREFIX):
            provider, rest = None, identifier
        else:
            provider, sep, rest = identifier.partition("/")
            if not sep:
                provider, rest = None, identifier
        fine_tuned = rest.startswith(FINE_TUNE_PREFIX)
        base = rest[len(FINE_TUNE_PREFIX):] if fine_tuned else rest
        family, version = self.split_family(base)
        return ParsedModelId(
            identifier=identifier,
            provider=provider,
            raw=rest,
            fine_tuned=fine_tuned,
            family=family,
            version=version,
            rank=self.family_rank(family),
        )

    def sort_key(self, identifier: str):
        p = self.parse(identifier)
        return (p.fine_tuned, -p.rank, p.family, len(p.raw), p.identifier)

    def compare(self, a: str, b: str) -> int:
        ka, kb = self.sort_key(a), self.sort_key(b)
        return (ka > kb) - (ka < kb)

    def rank(self, identifiers: Iterable[str]) -> List[str]:
        return sorted(identifiers, key=self.sort_key)


DEFAULT_SCHEME = RankingScheme()


def parse_model_id(identifier: str, scheme: RankingScheme = DEFAULT_SCHEME) -> ParsedModelId:
    return scheme.parse(identifier)


def model_sort_key(identifier: str, scheme: RankingScheme = DEFAULT_SCHEME):
    """Key for sorted(); tuples compare in the catalog's display order."""
    return scheme.sort_key(identifier)


def compare_models(a: str, b: str, scheme: RankingScheme = DEFAULT_SCHEME) -> int:
    """cmp-style comparator: negative when a is listed before b."""
    return scheme.compare(a, b)


def rank_models(identifiers: Sequence[str], scheme: RankingScheme = DEFAULT_SCHEME) -> List[str]:
    """Return a new list in display order. The input is not touched."""
    return scheme.rank(identifiers)
