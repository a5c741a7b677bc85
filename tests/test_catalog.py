"""Tests for shaping the router's model listing."""
from routerdesk.core.catalog import pick_default, provider_rows, qualified_ids, unique_names
from routerdesk.core.model_ranking import RankingScheme

CATALOG = [
    {"provider_id": 1, "provider_name": "OpenAI", "name": "gpt-4-0613"},
    {"provider_id": 1, "provider_name": "OpenAI", "name": "gpt-4"},
    {"provider_id": 2, "provider_name": "Azure", "name": "gpt-4"},
    {"provider_id": 1, "provider_name": "OpenAI", "name": "ft:gpt-4-custom"},
    {"provider_id": 3, "provider_name": "Router", "name": "smart"},
    {"provider_id": 1, "provider_name": "OpenAI", "name": "gpt-5"},
    {"provider_id": 4, "provider_name": "", "name": "orphan"},
    {"provider_id": 5, "provider_name": "OpenAI"},
]


def test_unique_names_deduplicates_and_ranks():
    assert unique_names(CATALOG) == ["gpt-5", "gpt-4", "gpt-4-0613", "orphan", "smart", "ft:gpt-4-custom"]


def test_qualified_ids_lowercase_provider_and_skip_router():
    assert qualified_ids(CATALOG) == [
        "openai/gpt-5",
        "azure/gpt-4",
        "openai/gpt-4",
        "openai/gpt-4-0613",
        "openai/ft:gpt-4-custom",
    ]


def test_qualified_ids_custom_exclusions():
    ids = qualified_ids(CATALOG, exclude=("openai",))
    assert ids == ["azure/gpt-4", "router/smart"]


def test_provider_rows_only_enabled_with_models():
    providers = [
        {"name": "OpenAI", "enabled": True, "runtime_models": ["gpt-3.5-turbo", "gpt-4", "ft:gpt-4-x"]},
        {"name": "Off", "enabled": False, "runtime_models": ["gpt-5"]},
        {"name": "Empty", "enabled": True, "runtime_models": []},
        {"name": "Local", "enabled": True, "runtime_models": ["llama3-8b"]},
    ]
    assert provider_rows(providers) == [
        ("OpenAI", "gpt-4"), ("OpenAI", "gpt-3.5-turbo"), ("OpenAI", "ft:gpt-4-x"), ("Local", "llama3-8b"),
    ]


def test_custom_scheme_flows_through():
    entries = [{"name": "claude-3-opus"}, {"name": "gpt-3.5-turbo"}]
    assert unique_names(entries, RankingScheme(["gpt", "claude"])) == ["gpt-3.5-turbo", "claude-3-opus"]
    assert unique_names(entries, RankingScheme(["claude"])) == ["claude-3-opus", "gpt-3.5-turbo"]


def test_pick_default():
    ranked = ["gpt-5", "gpt-4"]
    assert pick_default(ranked) == "gpt-5"
    assert pick_default(ranked, "gpt-4") == "gpt-4"
    assert pick_default(ranked, "gone") == "gpt-5"
    assert pick_default([]) is None
