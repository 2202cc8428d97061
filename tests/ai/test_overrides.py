"""Tests for the custom override engine."""

import random

import pytest

from jai_chat.ai.overrides import (
    CannedResponse,
    CustomOverrideEngine,
    NoOverride,
    PromptOverride,
    match_trigger,
    parse_event_triggers,
    parse_random_injections,
)
from jai_chat.core.modes import list_modes
from jai_chat.storage.models import EventTrigger


class _AlwaysInject(random.Random):
    def random(self):
        return 0.0


class _NeverInject(random.Random):
    def random(self):
        return 0.999


class _BrokenRepo:
    async def get_config(self, mode_key):
        raise RuntimeError("database is locked")


class TestTriggerMatching:
    def test_first_match_wins_over_longest(self):
        triggers = [EventTrigger("hello", "Hi there!"), EventTrigger("hello world", "Greetings!")]
        assert match_trigger("hello world", triggers) == "Hi there!"

    def test_case_and_whitespace_insensitive(self):
        triggers = [EventTrigger("  Good Morning ", "Morning!")]
        assert match_trigger("   well GOOD MORNING to you  ", triggers) == "Morning!"

    def test_no_match(self):
        assert match_trigger("bye", [EventTrigger("hello", "hi")]) is None


class TestParsing:
    def test_malformed_triggers_filtered(self):
        raw = [
            {"trigger": "ok", "response": "fine"},
            {"trigger": "missing response"},
            {"trigger": 3, "response": "x"},
            "just a string",
            {"trigger": "   ", "response": "blank trigger"},
            {"trigger": "empty", "response": ""},
        ]
        assert parse_event_triggers(raw) == [EventTrigger("ok", "fine")]

    def test_malformed_injections_filtered(self):
        assert parse_random_injections(["a", 1, None, "", "b"]) == ["a", "b"]


class TestDecide:
    async def test_non_customizable_modes_never_override(self, custom_repo):
        await custom_repo.upsert_config("standard", "x", [{"trigger": "hi", "response": "canned"}], ["inj"])
        engine = CustomOverrideEngine(custom_repo, injection_probability=1.0)
        for mode in list_modes():
            if not mode.customizable:
                assert await engine.decide(mode.key, "hi") == NoOverride()

    async def test_missing_config(self, custom_repo):
        engine = CustomOverrideEngine(custom_repo)
        assert await engine.decide("j-realistic", "hi") == NoOverride()

    async def test_trigger_returns_canned_response(self, custom_repo):
        await custom_repo.upsert_config(
            "j-realistic",
            "",
            [{"trigger": "hello", "response": "Hi there!"}, {"trigger": "hello world", "response": "Greetings!"}],
            [],
        )
        engine = CustomOverrideEngine(custom_repo)
        assert await engine.decide("j-realistic", "  Hello World ") == CannedResponse("Hi there!")

    async def test_trigger_beats_injection(self, custom_repo):
        await custom_repo.upsert_config("j-realistic", "base", [{"trigger": "hi", "response": "yo"}], ["inj"])
        engine = CustomOverrideEngine(custom_repo, injection_probability=1.0, rng=_AlwaysInject())
        assert await engine.decide("j-realistic", "hi") == CannedResponse("yo")

    async def test_blank_response_falls_through_to_base_prompt(self, custom_repo):
        triggers = [{"trigger": "hi", "response": ""}, {"trigger": "hi", "response": "  "}]
        await custom_repo.upsert_config("j-realistic", "base", triggers, [])
        engine = CustomOverrideEngine(custom_repo, rng=_NeverInject())
        assert await engine.decide("j-realistic", "hi") == PromptOverride(
            base_prompt_override="base", injected_prefix=None
        )

    async def test_base_prompt_override(self, custom_repo):
        await custom_repo.upsert_config("unprofessional", "Custom base", [], ["inj"])
        engine = CustomOverrideEngine(custom_repo, rng=_NeverInject())
        assert await engine.decide("unprofessional", "hey") == PromptOverride(
            base_prompt_override="Custom base", injected_prefix=None
        )

    async def test_blank_base_prompt_is_no_override(self, custom_repo):
        await custom_repo.upsert_config("unprofessional", "   ", [], ["inj"])
        engine = CustomOverrideEngine(custom_repo, rng=_NeverInject())
        assert await engine.decide("unprofessional", "hey") == NoOverride()

    async def test_injection_without_base_prompt(self, custom_repo):
        await custom_repo.upsert_config("j-realistic", "", [], ["only one"])
        engine = CustomOverrideEngine(custom_repo, rng=_AlwaysInject())
        assert await engine.decide("j-realistic", "hey") == PromptOverride(
            base_prompt_override=None, injected_prefix="only one"
        )

    async def test_load_error_degrades_to_no_override(self):
        engine = CustomOverrideEngine(_BrokenRepo())
        assert await engine.decide("j-realistic", "hi") == NoOverride()

    async def test_malformed_json_degrades_to_no_override(self, custom_repo, db):
        await db.conn.execute(
            "INSERT INTO custom_model_configs (mode_key, event_triggers) VALUES (?, ?)",
            ("j-realistic", "[oops"),
        )
        await db.conn.commit()
        engine = CustomOverrideEngine(custom_repo)
        assert await engine.decide("j-realistic", "hi") == NoOverride()


class TestInjectionRate:
    def test_rate_matches_probability(self):
        engine = CustomOverrideEngine(repo=None, injection_probability=0.1, rng=random.Random(42))
        trials = 10_000
        hits = sum(engine.pick_injection(["a", "b", "c"]) is not None for _ in range(trials))
        assert hits / trials == pytest.approx(0.1, abs=0.01)

    def test_injection_choice_is_uniform(self):
        engine = CustomOverrideEngine(repo=None, injection_probability=1.0, rng=random.Random(7))
        picks = [engine.pick_injection(["a", "b"]) for _ in range(2_000)]
        assert picks.count("a") / len(picks) == pytest.approx(0.5, abs=0.05)

    def test_empty_list_never_injects(self):
        engine = CustomOverrideEngine(repo=None, injection_probability=1.0)
        assert engine.pick_injection([]) is None
