from bizportal.ingest.tokenizer import STOP_WORDS, analyze, normalize_token, term_freq, tokenize


def test_tokenize_lowercases_and_strips_punctuation() -> None:
    assert tokenize("Hello, World! Spa_day") == ["hello", "world", "spa", "day"]
    assert tokenize("   ") == []


def test_normalize_token_folds_plurals_and_possessives() -> None:
    assert normalize_token("hours") == "hour"
    assert normalize_token("services") == "service"
    assert normalize_token("stories") == "story"
    assert normalize_token("spa's") == "spa"
    assert normalize_token("bus") == "bus"


def test_term_freq_drops_stop_words_and_long_digit_runs() -> None:
    counts = term_freq("The spa opens at 9am. Call 0501234567 or visit in 2024. Spa services!")

    assert counts == {
        "spa": 2,
        "open": 1,
        "9am": 1,
        "call": 1,
        "visit": 1,
        "service": 1,
    }


def test_term_freq_keeps_short_numbers() -> None:
    assert term_freq("Open 10 to 20") == {"open": 1, "10": 1, "20": 1}


def test_term_freq_terms_come_from_analyze() -> None:
    text = "Our therapists offer relaxing massages and facials for couples."
    counts = term_freq(text)

    assert set(counts) <= set(analyze(text))
    assert not set(counts) & STOP_WORDS
    assert all(count > 0 for count in counts.values())
