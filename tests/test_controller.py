"""Tests for the voice flow: phase order, prompt queueing and retry bounds."""

import asyncio

from voice_survey.controller import FlowController
from voice_survey.models import FlowState, Question, QuestionType, Option
from voice_survey.session import VoiceSession

from conftest import FakeSpeechProvider, FailingResponseRepository, make_survey, yes_no_question


def run(coro):
    return asyncio.run(coro)


async def start_session(survey, provider, settings, responses):
    session = VoiceSession(survey, provider, settings, responses)
    await session.controller.start()
    await session.controller.wait_idle()
    return session


async def say(session, provider, text):
    await provider.say(text)
    await session.controller.wait_idle()


def test_happy_path_submits_and_resets(provider, fast_flow, responses):
    async def scenario():
        session = await start_session(make_survey(yes_no_question()), provider, fast_flow, responses)
        controller = session.controller
        assert provider.spoken == [FlowController.NAME_PROMPT]

        await say(session, provider, "Asha Rao")
        assert controller.state == FlowState.COLLECTING_STATE
        await say(session, provider, "karnataka")
        assert controller.state == FlowState.ANSWERING_QUESTIONS
        assert provider.spoken[-1] == "Do you have a clinic nearby?"

        await say(session, provider, "yes")
        assert controller.state == FlowState.CONFIRM_OR_CONTINUE
        assert provider.spoken[-1] == FlowController.CONFIRM_PROMPT

        await say(session, provider, "submit")
        return session

    session = run(scenario())
    controller = session.controller

    assert controller.state == FlowState.COLLECTING_NAME
    assert not controller.started
    assert session.status.text == "Submitted"
    assert len(responses.saved) == 1
    response = responses.saved[0]
    assert response.user_name == "Asha Rao"
    assert response.region == "Karnataka"
    assert response.answers[0].selected_values == ["true"]


def test_phases_only_move_forward_until_reset(provider, fast_flow, responses):
    async def scenario():
        session = await start_session(make_survey(yes_no_question()), provider, fast_flow, responses)
        for text in ("Asha", "goa", "no", "next", "submit"):
            await say(session, provider, text)
        return session.controller

    controller = run(scenario())
    assert controller.history == [
        (FlowState.COLLECTING_NAME, FlowState.COLLECTING_STATE),
        (FlowState.COLLECTING_STATE, FlowState.ANSWERING_QUESTIONS),
        (FlowState.ANSWERING_QUESTIONS, FlowState.CONFIRM_OR_CONTINUE),
        (FlowState.CONFIRM_OR_CONTINUE, FlowState.FINAL_SUBMIT),
        (FlowState.FINAL_SUBMIT, FlowState.COLLECTING_NAME),
    ]


def test_utterances_while_speaking_are_replayed_in_order(provider, fast_flow, responses):
    async def scenario():
        session = VoiceSession(make_survey(yes_no_question()), provider, fast_flow, responses)
        changes = []
        session.form.subscribe(changes.append)
        await session.controller.start()
        assert session.controller.speaking

        await provider.say("Asha Rao")
        await provider.say("kerala")
        assert session.controller.pending.qsize() == 2

        await session.controller.wait_idle()
        return session, changes

    session, changes = run(scenario())
    assert [c.field_id for c in changes] == ["userName", "userState"]
    assert session.controller.state == FlowState.ANSWERING_QUESTIONS
    assert session.controller.pending.empty()
    assert provider.spoken[-1] == "Do you have a clinic nearby?"


def test_prompt_is_dropped_while_speaking(provider, fast_flow, responses):
    async def scenario():
        session = VoiceSession(make_survey(yes_no_question()), provider, fast_flow, responses)
        await session.controller.start()
        await session.controller.prompt()
        await session.controller.wait_idle()

    run(scenario())
    assert provider.spoken == [FlowController.NAME_PROMPT]


def test_undiscoverable_question_moves_to_confirmation(provider, fast_flow, responses):
    hidden = Question(
        id="hidden",
        text="",
        type=QuestionType.SINGLE_CHOICE,
        options=[Option("A", "a")],
    )

    async def scenario():
        session = await start_session(make_survey(hidden), provider, fast_flow, responses)
        await say(session, provider, "Asha")
        await say(session, provider, "goa")
        return session.controller

    controller = run(scenario())
    assert controller.state == FlowState.CONFIRM_OR_CONTINUE
    assert provider.spoken[-1] == FlowController.CONFIRM_PROMPT
    assert controller.discovery_retries == 0


def test_scale_out_of_range_reprompts_same_question(provider, fast_flow, responses):
    scale = Question(id="rating", text="Rate the roads from one to five", type=QuestionType.SCALE,
                     min_value=1, max_value=5)

    async def scenario():
        session = await start_session(make_survey(scale), provider, fast_flow, responses)
        await say(session, provider, "Asha")
        await say(session, provider, "goa")
        await say(session, provider, "nine")
        return session

    session = run(scenario())
    assert session.controller.state == FlowState.ANSWERING_QUESTIONS
    assert session.form.questions[0].value is None
    assert session.controller.reprompt_retries == 1
    assert provider.spoken.count("Rate the roads from one to five") == 2


def test_repeated_no_speech_forces_next_phase(provider, fast_flow, responses):
    async def scenario():
        session = await start_session(make_survey(yes_no_question()), provider, fast_flow, responses)
        for _ in range(2):
            await say(session, provider, "")
            assert session.controller.state == FlowState.COLLECTING_NAME
        await say(session, provider, "")
        return session

    session = run(scenario())
    assert session.controller.state == FlowState.COLLECTING_STATE
    assert session.form.name == ""
    assert provider.spoken.count(FlowController.NAME_PROMPT) == 3
    assert provider.spoken[-1] == FlowController.STATE_PROMPT


def test_unmatched_answers_skip_question_after_retry_bound(provider, fast_flow, responses):
    async def scenario():
        session = await start_session(
            make_survey(yes_no_question(), yes_no_question("q2", "Is water supply regular?")),
            provider, fast_flow, responses,
        )
        await say(session, provider, "Asha")
        await say(session, provider, "goa")
        for _ in range(3):
            await say(session, provider, "purple elephant")
        return session

    session = run(scenario())
    first = session.form.questions[0]
    assert first.skipped
    assert not first.has_selection
    assert session.controller.state == FlowState.ANSWERING_QUESTIONS
    assert provider.spoken[-1] == "Is water supply regular?"


def test_provider_errors_retry_collecting_phases(provider, fast_flow, responses):
    async def scenario():
        session = await start_session(make_survey(yes_no_question()), provider, fast_flow, responses)
        await provider.fail("network")
        await session.controller.wait_idle()
        return session

    session = run(scenario())
    assert session.status.text == "Error: network"
    assert provider.spoken.count(FlowController.NAME_PROMPT) == 2


def test_confirmation_waits_without_reprompt(provider, fast_flow, responses):
    async def scenario():
        session = await start_session(make_survey(yes_no_question()), provider, fast_flow, responses)
        for text in ("Asha", "goa", "yes"):
            await say(session, provider, text)
        spoken = len(provider.spoken)
        await say(session, provider, "")
        await say(session, provider, "maybe later")
        return session, spoken

    session, spoken = run(scenario())
    assert session.controller.state == FlowState.CONFIRM_OR_CONTINUE
    assert len(provider.spoken) == spoken


def test_unsupported_environment_disables_toggle(fast_flow, responses):
    provider = FakeSpeechProvider(supported=False)

    async def scenario():
        session = VoiceSession(make_survey(yes_no_question()), provider, fast_flow, responses)
        started = await session.controller.start()
        await session.controller.wait_idle()
        return session, started

    session, started = run(scenario())
    assert not started
    assert not session.status.enabled
    assert session.status.text == "Voice input is not supported on this device"
    assert provider.spoken == []


def test_failed_submit_keeps_final_phase(provider, fast_flow):
    async def scenario():
        session = await start_session(
            make_survey(yes_no_question()), provider, fast_flow, FailingResponseRepository()
        )
        for text in ("Asha", "goa", "yes", "next", "submit"):
            await say(session, provider, text)
        return session

    session = run(scenario())
    assert session.controller.state == FlowState.FINAL_SUBMIT
    assert session.controller.started
    assert session.status.text == "Error: storage offline"
    assert not session.submitted


def test_speech_failure_is_reported_not_raised(fast_flow, responses):
    provider = FakeSpeechProvider(fail_speak=True)

    async def scenario():
        session = VoiceSession(make_survey(yes_no_question()), provider, fast_flow, responses)
        await session.controller.start()
        await session.controller.wait_idle()
        return session

    session = run(scenario())
    assert session.status.text.startswith("Error: synthesis")
    # Retry bound hit in the name phase moves the flow on.
    assert session.controller.state >= FlowState.COLLECTING_STATE


def test_restart_clears_progress(provider, fast_flow, responses):
    async def scenario():
        session = await start_session(make_survey(yes_no_question()), provider, fast_flow, responses)
        await say(session, provider, "Asha")
        await session.controller.restart()
        await session.controller.wait_idle()
        return session.controller

    controller = run(scenario())
    assert controller.state == FlowState.COLLECTING_NAME
    assert provider.spoken[-1] == FlowController.NAME_PROMPT


def test_repeat_question_is_dropped_while_prompt_plays(provider, fast_flow, responses):
    async def scenario():
        session = await start_session(make_survey(yes_no_question()), provider, fast_flow, responses)
        await say(session, provider, "Asha")
        await provider.say("goa")
        while not session.controller.speaking:
            await asyncio.sleep(0)
        # The question prompt is playing and has not settled.
        await session.controller.speak_current_question()
        await provider.say("yes")
        await session.controller.wait_idle()
        return session

    session = run(scenario())
    assert provider.spoken.count("Do you have a clinic nearby?") == 1
    assert session.form.questions[0].answered
    assert session.controller.state == FlowState.CONFIRM_OR_CONTINUE
