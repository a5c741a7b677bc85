# routerdesk/core/catalog.py
"""Shape the router's /api/models listing for the pickers that show it."""
from __future__ import annotations
from typing import Dict, Iterable, List, Optional, Tuple
from .model_ranking import RankingScheme, DEFAULT_SCHEME

ROUTER_PROVIDER = "router"


def unique_names(entries: Iterable[Dict], scheme: RankingScheme = DEFAULT_SCHEME) -> List[str]:
    """Distinct model names across providers, in display order."""
    seen: Dict[str, None] = {}
    for e in entries:
        name = e.get("name")
        if isinstance(name, str) and name:
            seen.setdefault(name, None)
    return scheme.rank(seen)


def qualify(provider_name: str, name: str) -> str:
    return f"{str(provider_name).lower()}/{name}"


def qualified_ids(entries: Iterable[Dict], scheme: RankingScheme = DEFAULT_SCHEME,
                  exclude: Tuple[str, ...] = (ROUTER_PROVIDER,)) -> List[str]:
    """
    `provider/name` ids as fallback routes reference them. The router's own
    aliases are skipped; they cannot be fallback targets.
    """
    skip = {x.lower() for x in exclude}
    out: List[str] = []
    for e in entries:
        provider = (e.get("provider_name") or "").strip()
        name = e.get("name")
        if not provider or not name or provider.lower() in skip:
            continue
        qid = qualify(provider, name)
        if qid not in out:
            out.append(qid)
    return scheme.rank(out)


def provider_rows(providers: Iterable[Dict], scheme: RankingScheme = DEFAULT_SCHEME) -> List[Tuple[str, str]]:
    """(provider, model) rows for enabled providers' pulled runtime models."""
    rows: List[Tuple[str, str]] = []
    for p in providers:
        pulled = p.get("runtime_models") or []
        if not p.get("enabled") or not pulled:
            continue
        rows.extend((p.get("name", ""), m) for m in scheme.rank(pulled))
    return rows


def pick_default(ranked: List[str], preferred: Optional[str] = None) -> Optional[str]:
    if preferred and preferred in ranked:
        return preferred
    return ranked[0] if ranked else None
