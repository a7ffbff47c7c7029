"""Tests for the rule-based conversation engine.

Covers intent classification, numeric extraction and the step machine
without any assistant gateway involved.
"""

import pytest

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from mortgage_assistant.engine import (
    NUMBER_INPUT,
    UNKNOWN,
    ConversationEngine,
    classify_intent,
    extract_integer,
    extract_number,
    extract_numbers,
    is_affirmative,
)
from mortgage_assistant.i18n import get_response
from mortgage_assistant.models.conversation import ConversationState, Stage


# ── Helpers ─────────────────────────────────────────────────────

def _feed(engine, state, *texts, locale="en"):
    reply = None
    for text in texts:
        reply = engine.process(state, text, locale)
    return reply


def _at_results(engine):
    state = ConversationState()
    _feed(engine, state, "hi", "400000", "80000", "6.5", "30")
    assert state.step == Stage.RESULTS
    return state


@pytest.fixture
def engine():
    return ConversationEngine()


# ── Intent classification ──────────────────────────────────────

class TestClassifyIntent:
    @pytest.mark.parametrize("text,intent", [
        ("Hello there", "greeting"),
        ("I want to calculate my mortgage", "calculation"),
        ("what's the home price?", "property_price"),
        ("how big a deposit?", "down_payment"),
        ("what APR is normal", "interest_rate"),
        ("help", "help"),
        ("goodbye", "goodbye"),
        ("again please", "recalculate"),
        ("download", "download"),
    ])
    def test_keyword_categories(self, text, intent):
        assert classify_intent(text) == intent

    def test_first_declared_category_wins(self):
        # "recalculate" contains "calculate", declared earlier
        assert classify_intent("recalculate") == "calculation"
        # "restart" contains "start"
        assert classify_intent("restart") == "greeting"

    def test_keyword_beats_number_pattern(self):
        assert classify_intent("30 years") == "loan_term"

    @pytest.mark.parametrize("text", ["400000", "$400,000", "6.5", "6.5%", "xyz123"])
    def test_numeric_answers(self, text):
        assert classify_intent(text) == NUMBER_INPUT

    def test_unknown(self):
        assert classify_intent("purple") == UNKNOWN

    def test_case_insensitive(self):
        assert classify_intent("HELLO") == "greeting"

    def test_affirmative(self):
        assert is_affirmative("Yes please")
        assert is_affirmative("oui")
        assert not is_affirmative("no thanks")


# ── Numeric extraction ─────────────────────────────────────────

class TestExtractNumber:
    @pytest.mark.parametrize("text,expected", [
        ("400000", 400000.0),
        ("$400,000", 400000.0),
        ("6.5%", 6.5),
        ("  80,000 dollars", 80000.0),
        (".5", 0.5),
        ("-3", -3.0),
    ])
    def test_parses_leading_number(self, text, expected):
        assert extract_number(text) == expected

    @pytest.mark.parametrize("text", ["", "abc", "xyz123", "about 400000"])
    def test_no_leading_number(self, text):
        assert extract_number(text) is None

    def test_integer_truncates(self):
        assert extract_integer("30") == 30
        assert extract_integer("30.7") == 30
        assert extract_integer("15 yrs") == 15

    def test_integer_rejects_currency(self):
        assert extract_integer("$30") is None

    def test_numbers_in_reply_text(self):
        text = "Great, $400,000 it is. Next, your down payment of 80000 and 6.5% rate."
        assert extract_numbers(text) == [400000.0, 80000.0, 6.5]

    def test_numbers_in_text_without_numbers(self):
        assert extract_numbers("What is the home price?") == []


# ── Step machine ───────────────────────────────────────────────

class TestGreetingStage:
    def test_greeting_advances(self, engine):
        state = ConversationState()
        reply = engine.process(state, "hi", "en")
        assert reply.next_step == Stage.PROPERTY_PRICE
        assert reply.response_text == get_response("property_price", "en")

    def test_calculation_request_advances(self, engine):
        state = ConversationState()
        engine.process(state, "calculate my payment", "en")
        assert state.step == Stage.PROPERTY_PRICE

    def test_goodbye_stays(self, engine):
        state = ConversationState()
        reply = engine.process(state, "bye", "en")
        assert reply.next_step == Stage.GREETING
        assert reply.response_text == get_response("goodbye", "en")

    def test_unrecognized_text_clarifies(self, engine):
        state = ConversationState()
        reply = engine.process(state, "xyz123", "en")
        assert reply.next_step == Stage.GREETING
        assert reply.response_text == get_response("clarify", "en")


class TestHappyPath:
    def test_full_flow_reaches_results(self, engine):
        state = ConversationState()
        steps = []
        for text in ["hi", "400000", "80000", "6.5", "30"]:
            steps.append(engine.process(state, text, "en").next_step)

        assert steps == [
            Stage.PROPERTY_PRICE,
            Stage.DOWN_PAYMENT,
            Stage.INTEREST_RATE,
            Stage.LOAN_TERM,
            Stage.RESULTS,
        ]

    def test_monthly_payment_estimate(self, engine):
        state = _at_results(engine)
        assert state.breakdown.loan_amount == 320000
        assert state.breakdown.monthly_payment == pytest.approx(2022.62, abs=0.01)

    def test_results_message(self, engine):
        state = ConversationState()
        reply = _feed(engine, state, "hi", "$400,000", "$80,000", "6.5%", "30")
        assert "$2,022.62" in reply.response_text
        assert "$320,000.00" in reply.response_text
        assert reply.breakdown is not None

    def test_collected_fields_reported(self, engine):
        state = ConversationState()
        reply = _feed(engine, state, "hi", "400000", "80000", "6.5", "30")
        fields = reply.collected_fields
        assert fields.property_price == 400000
        assert fields.down_payment == 80000
        assert fields.interest_rate == 6.5
        assert fields.loan_term_years == 30

    def test_history_records_both_sides(self, engine):
        state = ConversationState()
        _feed(engine, state, "hi", "400000")
        assert [e.role for e in state.history] == ["user", "assistant", "user", "assistant"]
        assert state.history[2].content == "400000"


class TestInputValidation:
    def test_zero_price_rejected(self, engine):
        state = ConversationState()
        reply = _feed(engine, state, "hi", "0")
        assert reply.next_step == Stage.PROPERTY_PRICE
        assert reply.response_text == get_response("invalid_price", "en")
        assert state.property_price is None

    def test_down_payment_equal_to_price_rejected(self, engine):
        state = ConversationState()
        reply = _feed(engine, state, "hi", "300000", "300000")
        assert reply.next_step == Stage.DOWN_PAYMENT
        assert state.down_payment is None

    def test_zero_down_payment_accepted(self, engine):
        state = ConversationState()
        reply = _feed(engine, state, "hi", "300000", "0")
        assert reply.next_step == Stage.INTEREST_RATE
        assert state.down_payment == 0

    @pytest.mark.parametrize("rate", ["0", "20"])
    def test_rate_bounds_exclusive(self, engine, rate):
        state = ConversationState()
        reply = _feed(engine, state, "hi", "300000", "60000", rate)
        assert reply.next_step == Stage.INTEREST_RATE
        assert state.interest_rate is None

    def test_rate_just_below_limit_accepted(self, engine):
        state = ConversationState()
        reply = _feed(engine, state, "hi", "300000", "60000", "19.99")
        assert reply.next_step == Stage.LOAN_TERM
        assert state.interest_rate == 19.99

    def test_vanishing_rate_still_reaches_results(self, engine):
        state = ConversationState()
        reply = _feed(engine, state, "hi", "400000", "80000", "0.0000000000000001", "30")

        assert reply.next_step == Stage.RESULTS
        assert state.interest_rate == 1e-16
        assert state.breakdown.monthly_payment == pytest.approx(320000 / 360)
        assert state.breakdown.total_interest == pytest.approx(0.0, abs=1e-6)

    @pytest.mark.parametrize("years,accepted", [("0", False), ("50", True), ("51", False)])
    def test_term_bounds(self, engine, years, accepted):
        state = ConversationState()
        reply = _feed(engine, state, "hi", "300000", "60000", "5", years)
        expected = Stage.RESULTS if accepted else Stage.LOAN_TERM
        assert reply.next_step == expected

    def test_non_numeric_answer_reprompts(self, engine):
        state = ConversationState()
        reply = _feed(engine, state, "hi", "a lot")
        assert reply.next_step == Stage.PROPERTY_PRICE
        assert reply.response_text == get_response("invalid_price", "en")

    def test_help_gives_example(self, engine):
        state = ConversationState()
        reply = _feed(engine, state, "hi", "help")
        assert reply.next_step == Stage.PROPERTY_PRICE
        assert reply.response_text == get_response("help_property_price", "en")

    def test_help_at_rate_stage(self, engine):
        state = ConversationState()
        reply = _feed(engine, state, "hi", "300000", "60000", "help")
        assert reply.response_text == get_response("help_interest_rate", "en")


class TestResultsStage:
    def test_recalculate_clears_fields(self, engine):
        state = _at_results(engine)
        reply = engine.process(state, "recalculate", "en")

        assert reply.next_step == Stage.PROPERTY_PRICE
        assert state.property_price is None
        assert state.down_payment is None
        assert state.interest_rate is None
        assert state.loan_term_years is None
        assert state.breakdown is None

    def test_again_also_recalculates(self, engine):
        state = _at_results(engine)
        engine.process(state, "again", "en")
        assert state.step == Stage.PROPERTY_PRICE
        assert state.property_price is None

    def test_download_returns_to_greeting(self, engine):
        state = _at_results(engine)
        reply = engine.process(state, "download", "en")
        assert reply.next_step == Stage.GREETING
        assert reply.response_text == get_response("download_ready", "en")
        # breakdown stays available until a new calculation starts
        assert state.breakdown is not None

    def test_help_moves_to_support(self, engine):
        state = _at_results(engine)
        reply = engine.process(state, "help", "en")
        assert reply.next_step == Stage.SUPPORT
        assert reply.response_text == get_response("support", "en")

    def test_anything_else_thanks(self, engine):
        state = _at_results(engine)
        reply = engine.process(state, "ok", "en")
        assert reply.next_step == Stage.GREETING
        assert reply.response_text == get_response("thank_you", "en")

    def test_history_survives_recalculate(self, engine):
        state = _at_results(engine)
        before = len(state.history)
        engine.process(state, "recalculate", "en")
        assert len(state.history) == before + 2


class TestSupportStage:
    def _at_support(self, engine):
        state = _at_results(engine)
        engine.process(state, "help", "en")
        return state

    def test_yes_hands_off(self, engine):
        state = self._at_support(engine)
        reply = engine.process(state, "yes", "en")
        assert reply.response_text == get_response("human_support", "en")
        assert reply.next_step == Stage.GREETING

    def test_greeting_hands_off(self, engine):
        state = self._at_support(engine)
        reply = engine.process(state, "hello", "en")
        assert reply.response_text == get_response("human_support", "en")

    def test_no_declines(self, engine):
        state = self._at_support(engine)
        reply = engine.process(state, "no", "en")
        assert reply.response_text == get_response("no_support", "en")
        assert reply.next_step == Stage.GREETING


class TestNewCalculationAfterResults:
    def test_greeting_after_download_starts_clean(self, engine):
        state = _at_results(engine)
        engine.process(state, "download", "en")
        engine.process(state, "hi", "en")

        assert state.step == Stage.PROPERTY_PRICE
        assert state.property_price is None
        assert state.breakdown is None


class TestLocales:
    def test_spanish_prompts(self, engine):
        state = ConversationState()
        reply = engine.process(state, "hi", "es")
        assert reply.response_text == get_response("property_price", "es")
        assert reply.response_text.startswith("¡Genial!")

    def test_unknown_locale_falls_back_to_english(self, engine):
        state = ConversationState()
        reply = engine.process(state, "hi", "de")
        assert reply.response_text == get_response("property_price", "en")

    def test_french_results(self, engine):
        state = ConversationState()
        reply = _feed(engine, state, "hi", "400000", "80000", "6.5", "30", locale="fr")
        assert "Votre paiement mensuel estimé est" in reply.response_text

    def test_opening_message(self, engine):
        assert engine.opening("en").startswith("👋 Hello!")
        assert engine.opening("fr").startswith("👋 Bonjour")


class TestUnknownStep:
    def test_invalid_step_resets_to_greeting(self, engine):
        state = ConversationState()
        state.property_price = 100000
        state.step = "bogus"

        reply = engine.process(state, "hi", "en")
        assert reply.next_step == Stage.GREETING
        assert reply.response_text == get_response("fallback", "en")
        assert state.property_price is None


class TestPlanIsPure:
    def test_plan_does_not_mutate(self, engine):
        state = ConversationState()
        engine.process(state, "hi", "en")
        snapshot = state.model_dump()

        plan = engine.plan(state, "400000", "en")
        assert plan.advances
        assert plan.updates == {"property_price": 400000.0}
        assert state.model_dump() == snapshot
