# tests/test_postprocess_en.py
from tingyi.nlp.postprocess_en import normalize_en

def test_normalize_en_strips_label():
    assert normalize_en("English: Good morning") == "Good morning."

def test_normalize_en_keeps_terminal_punctuation():
    assert normalize_en("Are you ready?") == "Are you ready?"

def test_normalize_en_empty():
    assert normalize_en("") == ""

def test_normalize_en_straightens_curly_apostrophes():
    assert normalize_en("It’s the team’s call") == "It's the team's call."

def test_normalize_en_strips_curly_single_wrapping_quotes():
    assert normalize_en("‘See you tomorrow’") == "See you tomorrow."
