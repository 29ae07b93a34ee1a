from app.llm.service.prompt import (
    DISCLAIMERS,
    FALLBACK_MESSAGES,
    build_health_safe_prompt,
    disclaimer,
    fallback_message,
)


def test_turkish_prompt_wraps_question_with_preamble_and_disclaimer():
    prompt = build_health_safe_prompt("Öksürüğe ne iyi gelir?", "tr")

    assert prompt.startswith("Sen DoktorAi'sin")
    assert DISCLAIMERS["tr"] in prompt
    assert prompt.endswith("\n\nKullanıcı sorusu: Öksürüğe ne iyi gelir?")


def test_english_prompt_uses_english_preamble():
    prompt = build_health_safe_prompt("What helps a cough?", "en")

    assert prompt.startswith("You are DoktorAi")
    assert f'Always end your response with: "{DISCLAIMERS["en"]}"' in prompt
    assert prompt.endswith("What helps a cough?")


def test_unknown_language_falls_back_to_turkish():
    assert build_health_safe_prompt("x", "de") == build_health_safe_prompt("x", "tr")
    assert disclaimer("de") == DISCLAIMERS["tr"]
    assert fallback_message("de") == FALLBACK_MESSAGES["tr"]


def test_fallback_messages_carry_disclaimer():
    assert fallback_message("en").startswith("Sorry, I cannot respond right now.")
    assert "IMPORTANT DISCLAIMER" in fallback_message("en")
    assert "ÖNEMLI UYARI" in fallback_message("tr")
