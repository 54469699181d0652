from bizportal.retrieval.snippet import extract_snippet

_SPA = (
    "Serenity Spa is a calm day spa in Jumeirah. "
    "Open Monday–Saturday from 9am to 7pm, closed Sundays. "
    "Appointments recommended for peak hours. "
    "A deposit secures your booking."
)


def test_time_question_picks_opening_sentence() -> None:
    snippet = extract_snippet(_SPA, "what time do you open")

    assert snippet == (
        "Open Monday–Saturday from 9am to 7pm, closed Sundays. "
        "Appointments recommended for peak hours."
    )


def test_clock_times_win_among_hour_sentences() -> None:
    text = "Our hours change on holidays. Hours are 9am to 7pm."

    assert extract_snippet(text, "hours") == "Hours are 9am to 7pm."


def test_snippet_never_exceeds_max_len() -> None:
    text = "Massage " * 80 + "ends here."

    snippet = extract_snippet(text, "massage", max_len=120)

    assert len(snippet) <= 120
    assert snippet.endswith("…")


def test_no_overlap_prefers_first_short_sentence() -> None:
    text = "Free parking. Our therapists are certified professionals with years of practice."

    assert extract_snippet(text, "yoga", max_len=200) == text


def test_text_without_sentences_is_truncated() -> None:
    assert extract_snippet("   ", "anything") == ""
