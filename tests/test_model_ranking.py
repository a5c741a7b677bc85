"""Tests for the model catalog display order."""
import itertools
import random

import pytest

from routerdesk.core.model_ranking import (
    RankingScheme, compare_models, model_sort_key, parse_model_id, rank_models,
)

SAMPLE = ["gpt-5", "gpt-4-0613", "gpt-4", "gpt-3.5-turbo", "ft:gpt-4-custom"]
EXPECTED = ["gpt-5", "gpt-4", "gpt-4-0613", "gpt-3.5-turbo", "ft:gpt-4-custom"]


class TestParseModelId:

    @pytest.mark.parametrize("model_id,family,version", [
        ("gpt-4", "gpt-4", ""),
        ("gpt-5", "gpt-5", ""),
        ("gpt-4-0613", "gpt-4", "0613"),
        ("gpt-4-1106-preview", "gpt-4", "1106-preview"),
        ("gpt-3.5-turbo", "gpt-3.5-turbo", ""),
        ("gpt-3.5-turbo-16k", "gpt-3.5-turbo", "16k"),
        ("gpt-4.1", "gpt-4.1", ""),
        ("GPT-4-Turbo", "GPT-4-Turbo", ""),
    ])
    def test_family_and_version(self, model_id, family, version):
        p = parse_model_id(model_id)
        assert (p.family, p.version) == (family, version)

    @pytest.mark.parametrize("model_id", ["claude-3-opus", "llama3-70b", "gpt-4o", "", "gpt-", "weird//id"])
    def test_unmatched_ids_keep_whole_string_as_family(self, model_id):
        p = parse_model_id(model_id)
        assert p.version == ""
        assert p.family == p.raw

    def test_generation_rank(self):
        assert parse_model_id("gpt-5").rank == 5
        assert parse_model_id("gpt-3.5-turbo").rank == 3.5
        assert parse_model_id("gpt-4o").rank == 4
        assert parse_model_id("claude-3-opus").rank == 0

    def test_provider_namespace(self):
        p = parse_model_id("openai/gpt-4-0613")
        assert p.provider == "openai"
        assert p.raw == "gpt-4-0613"
        assert p.family == "gpt-4"

    def test_fine_tune_is_parsed_without_marker(self):
        p = parse_model_id("ft:gpt-4-custom")
        assert p.fine_tuned
        assert p.rank == 4
        assert parse_model_id("azure/ft:gpt-3.5-turbo:acme").fine_tuned

    def test_leading_fine_tune_marker_wins_over_slash(self):
        p = parse_model_id("ft:acme/gpt-4-x")
        assert p.fine_tuned
        assert p.provider is None
        assert p.raw == "ft:acme/gpt-4-x"


class TestRankModels:

    def test_sample_order(self):
        assert rank_models(SAMPLE) == EXPECTED

    def test_sorting_is_idempotent(self):
        assert rank_models(rank_models(SAMPLE)) == EXPECTED

    def test_order_does_not_depend_on_input_order(self):
        for perm in itertools.permutations(SAMPLE):
            assert rank_models(list(perm)) == EXPECTED

    def test_input_is_not_mutated(self):
        ids = list(SAMPLE)
        rank_models(ids)
        assert ids == SAMPLE

    def test_fine_tunes_after_everything_else(self):
        ids = ["ft:gpt-5-x", "zzz-local", "ft:gpt-3.5-turbo:acme", "claude-3-opus", "gpt-3.5-turbo"]
        ranked = rank_models(ids)
        assert ranked[:3] == ["gpt-3.5-turbo", "claude-3-opus", "zzz-local"]
        assert ranked[3:] == ["ft:gpt-5-x", "ft:gpt-3.5-turbo:acme"]
        assert rank_models(["ft:acme/gpt-4-x", "zzz"]) == ["zzz", "ft:acme/gpt-4-x"]
        assert rank_models(["ft:acme/gpt-4-x", "openai/ft:gpt-5", "azure/gpt-3"])[0] == "azure/gpt-3"

    def test_newer_generations_first(self):
        ids = ["gpt-3.5-turbo", "gpt-4", "gpt-10", "gpt-4.1", "gpt-9"]
        assert rank_models(ids) == ["gpt-10", "gpt-9", "gpt-4.1", "gpt-4", "gpt-3.5-turbo"]

    def test_unrecognized_families_rank_lowest_alphabetically(self):
        ids = ["mistral-large", "gpt-3.5-turbo", "claude-3-opus"]
        assert rank_models(ids) == ["gpt-3.5-turbo", "claude-3-opus", "mistral-large"]

    def test_length_uses_unnamespaced_id(self):
        ids = ["openai/gpt-4-0613", "openai/gpt-4", "azure/gpt-4"]
        assert rank_models(ids) == ["azure/gpt-4", "openai/gpt-4", "openai/gpt-4-0613"]

    def test_custom_scheme_ranks_more_families(self):
        scheme = RankingScheme(["gpt", "claude"])
        ids = ["claude-3-opus-20240229", "mistral-large", "claude-3.5-sonnet", "gpt-4", "claude-3-opus"]
        assert rank_models(ids, scheme) == [
            "gpt-4", "claude-3.5-sonnet", "claude-3-opus", "claude-3-opus-20240229", "mistral-large",
        ]

    def test_empty_scheme_falls_back_to_name_order(self):
        scheme = RankingScheme([])
        assert rank_models(["gpt-5", "gpt-4", "ft:a"], scheme) == ["gpt-4", "gpt-5", "ft:a"]


class TestCompareModels:

    def test_sign_follows_sort_key(self):
        assert compare_models("gpt-5", "gpt-4") < 0
        assert compare_models("ft:gpt-5", "gpt-3") > 0
        assert compare_models("gpt-4", "gpt-4") == 0

    def test_total_order_over_sample(self):
        pool = SAMPLE + ["openai/gpt-4", "claude-3-opus", "ft:x", "gpt-4.1", "a", "B"]
        for a, b in itertools.permutations(pool, 2):
            assert compare_models(a, b) == -compare_models(b, a)
            assert compare_models(a, b) != 0
        for a, b, c in itertools.permutations(pool, 3):
            if compare_models(a, b) < 0 and compare_models(b, c) < 0:
                assert compare_models(a, c) < 0

    def test_key_and_comparator_agree(self):
        ids = SAMPLE + ["gpt-4-turbo-preview", "gpt-4-32k", "x/y"]
        random.Random(7).shuffle(ids)
        for a, b in itertools.combinations(ids, 2):
            by_key = (model_sort_key(a) > model_sort_key(b)) - (model_sort_key(a) < model_sort_key(b))
            assert by_key == compare_models(a, b)
