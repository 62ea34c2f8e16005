"""Tests for committing utterances into survey form fields."""

from voice_survey.binder import FormBinder, match_multiple_options, match_single_option
from voice_survey.form import SurveyForm
from voice_survey.models import Option, Question, QuestionType

from conftest import make_survey, yes_no_question


def colors_question():
    return Question(
        id="q2",
        text="Which colors do you like?",
        type=QuestionType.MULTIPLE_CHOICE,
        options=[Option("Red", "red"), Option("Green", "green"), Option("Blue", "blue")],
    )


def scale_question(low=1, high=5):
    return Question(
        id="q3",
        text="Rate the service",
        type=QuestionType.SCALE,
        min_value=low,
        max_value=high,
    )


def text_question():
    return Question(id="q4", text="Any comments?", type=QuestionType.DESCRIPTIVE)


def binder_for(*questions):
    form = SurveyForm.from_survey(make_survey(*questions))
    changes = []
    form.subscribe(changes.append)
    return FormBinder(form), changes


def test_yes_picks_true_option():
    option = match_single_option([Option("No", "false"), Option("Yes", "true")], "yes")
    assert option.value == "true"


def test_no_picks_false_option():
    option = match_single_option([Option("True", "true"), Option("False", "false")], "nope")
    assert option.value == "false"


def test_yes_does_not_match_inside_a_word():
    options = [Option("noyes", "noyes"), Option("maybe", "maybe")]
    assert match_single_option(options, "yes") is None


def test_label_phrase_inside_utterance():
    options = [Option("Twice a week", "2"), Option("Never", "0")]
    assert match_single_option(options, "I go twice a week").value == "2"


def test_exact_label_beats_partial_match():
    options = [Option("Very good", "vg"), Option("Good", "g")]
    assert match_single_option(options, "good").value == "g"


def test_multiple_options_by_label():
    names = [o.label for o in match_multiple_options(colors_question().options, "red and blue")]
    assert names == ["Red", "Blue"]


def test_multiple_options_ignore_stop_words_only():
    assert match_multiple_options(colors_question().options, "and the") == []


def test_commit_radio_answer():
    binder, changes = binder_for(yes_no_question())
    question = binder.current_question()

    assert binder.commit_answer(question, "yes")
    assert question.answered
    assert question.value == "true"
    assert [o.checked for o in question.options] == [True, False]
    assert changes[-1].field_id == "q1"
    assert changes[-1].value == "true"


def test_commit_radio_keeps_single_selection():
    binder, _ = binder_for(yes_no_question())
    question = binder.current_question()
    binder.commit_answer(question, "yes")
    binder.commit_answer(question, "no")
    assert question.selected_values() == ["false"]


def test_commit_checkbox_answer():
    binder, _ = binder_for(colors_question())
    question = binder.current_question()
    assert binder.commit_answer(question, "red and blue")
    assert question.selected_values() == ["red", "blue"]
    assert question.value == "red,blue"


def test_scale_out_of_range_is_rejected():
    binder, changes = binder_for(scale_question(1, 5))
    question = binder.current_question()
    assert not binder.commit_answer(question, "nine")
    assert question.value is None
    assert not question.answered
    assert changes == []


def test_scale_in_range_is_committed():
    binder, _ = binder_for(scale_question(1, 5))
    question = binder.current_question()
    assert binder.commit_answer(question, "four please")
    assert question.value == 4


def test_scale_without_bounds_uses_one_to_ten():
    binder, _ = binder_for(scale_question(None, None))
    question = binder.current_question()
    assert not binder.commit_answer(question, "eleven")
    assert binder.commit_answer(question, "10")


def test_free_text_is_sanitized():
    binder, changes = binder_for(text_question())
    question = binder.current_question()
    assert binder.commit_answer(question, "More <b>buses</b><script>x()</script>")
    assert question.value == "More buses"
    assert changes[-1].event == "input"


def test_commit_name_rejects_markup_only():
    binder, _ = binder_for(text_question())
    assert not binder.commit_name("<b></b>")
    assert binder.commit_name(" Asha Rao ")
    assert binder.form.name == "Asha Rao"


def test_commit_region_respects_allowed_regions():
    form = SurveyForm.from_survey(make_survey(text_question(), allowed_regions=["Kerala"]))
    binder = FormBinder(form)
    assert binder.commit_region("karnataka") is None
    assert binder.commit_region("kerala").code == "KL"
    assert form.region.name == "Kerala"


def test_current_question_skips_questions_without_text_or_options():
    blank = Question(id="blank", text="  ", type=QuestionType.DESCRIPTIVE)
    no_options = Question(id="empty", text="Pick one", type=QuestionType.SINGLE_CHOICE)
    binder, _ = binder_for(blank, no_options, text_question())

    assert binder.current_question().id == "q4"
    assert binder.current_question_text() == "Any comments?"


def test_answered_questions_are_not_revisited():
    binder, _ = binder_for(yes_no_question(), text_question())
    binder.commit_answer(binder.current_question(), "no")
    assert binder.current_question().id == "q4"
