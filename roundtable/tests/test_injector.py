"""
Unit tests for the ChatInjector.

Tests cover:
- Detecting real generations vs. chat-load events
- Injection strategies per payload shape
- One-shot delivery of queued plots
- Turn counting and generation frequency
"""

import pytest

from roundtable.services import ChatInjector


class TestIsRealGeneration:
    """Tests for ChatInjector.is_real_generation."""

    @pytest.mark.parametrize("payload", [
        {"prompt": "Hello"},
        {"messages": [{"role": "user", "content": "Hi"}]},
        {"text": "Continue"},
    ])
    def test_real(self, payload):
        assert ChatInjector.is_real_generation(payload) is True

    @pytest.mark.parametrize("payload", [None, {}, {"prompt": "   "}, {"messages": []}, {"type": "load"}])
    def test_not_real(self, payload):
        assert ChatInjector.is_real_generation(payload) is False


class TestInjectPlotContext:
    """Tests for ChatInjector.inject_plot_context."""

    def test_prompt_strategy(self):
        payload = {"prompt": "User: hi"}
        assert ChatInjector.inject_plot_context(payload, "[Storm]") == "prompt"
        assert payload["prompt"] == "[Storm]\n\nUser: hi"

    def test_messages_strategy(self):
        payload = {"messages": [{"role": "user", "content": "hi"}]}
        assert ChatInjector.inject_plot_context(payload, "[Storm]") == "messages"
        assert payload["messages"][0] == {"role": "system", "content": "[Storm]"}
        assert len(payload["messages"]) == 2

    def test_nested_chat_prompt(self):
        payload = {"chat": {"prompt": "hi"}}
        assert ChatInjector.inject_plot_context(payload, "[Storm]") == "chat.prompt"
        assert payload["chat"]["prompt"] == "[Storm]\n\nhi"

    def test_fallback_field(self):
        payload = {"content": "hi"}
        assert ChatInjector.inject_plot_context(payload, "[Storm]") == "content"

    def test_no_field_fits(self):
        payload = {"other": 1}
        assert ChatInjector.inject_plot_context(payload, "[Storm]") is None
        assert payload == {"other": 1}


class TestApply:
    """Tests for ChatInjector.apply."""

    def test_queued_plot_is_sent_once(self):
        injector = ChatInjector()
        injector.inject_into_conversation("  [The bell tolls]  ")

        first = {"prompt": "one"}
        second = {"prompt": "two"}
        assert injector.apply(first).injected is True
        assert injector.apply(second).injected is False

        assert first["prompt"].startswith("[The bell tolls]")
        assert second["prompt"] == "two"

    def test_newer_plot_replaces_unsent(self):
        injector = ChatInjector()
        injector.inject_into_conversation("old")
        injector.inject_into_conversation("new")

        payload = {"prompt": "x"}
        injector.apply(payload)
        assert payload["prompt"] == "new\n\nx"

    def test_empty_text_is_ignored(self):
        injector = ChatInjector()
        injector.inject_into_conversation("   ")
        assert injector.pending_text is None

    def test_load_events_do_not_count_or_consume(self):
        injector = ChatInjector()
        injector.inject_into_conversation("queued")

        outcome = injector.apply({})
        assert outcome.turn == 0
        assert outcome.injected is False
        assert injector.pending_text == "queued"

    def test_text_only_payload(self):
        injector = ChatInjector()
        injector.inject_into_conversation("queued")

        payload = {"messages": None, "text": "continue"}
        outcome = injector.apply(payload)

        assert outcome.injected is True
        assert outcome.strategy == "text"
        assert payload["text"] == "queued\n\ncontinue"

    def test_generation_due_every_frequency_turns(self):
        injector = ChatInjector(frequency=2)
        due = [injector.apply({"prompt": "p"}).generation_due for _ in range(5)]

        assert due == [False, True, False, True, False]

    def test_frequency_does_not_delay_queued_plot(self):
        injector = ChatInjector(frequency=3)
        injector.inject_into_conversation("queued")

        payload = {"prompt": "first turn"}
        outcome = injector.apply(payload)

        assert outcome.turn == 1
        assert outcome.generation_due is False
        assert outcome.injected is True
        assert payload["prompt"] == "queued\n\nfirst turn"

    def test_disabled_injector_does_nothing(self):
        injector = ChatInjector(enabled=False)
        injector.inject_into_conversation("queued")

        payload = {"prompt": "p"}
        outcome = injector.apply(payload)
        assert outcome.injected is False
        assert payload["prompt"] == "p"

    def test_frequency_is_clamped(self):
        injector = ChatInjector()
        assert injector.set_frequency(0) == 1
        assert injector.set_frequency(1000) == 100
        assert injector.set_frequency("bad") == 100

    def test_reset_turns(self):
        injector = ChatInjector(frequency=1)
        injector.apply({"prompt": "p"})
        injector.reset_turns()

        assert injector.turn_counter == 0
        assert injector.apply({"prompt": "p"}).generation_due is True
