# app/llm/service/prompt.py
"""Fixed, per-language texts wrapped around every generative request."""

DISCLAIMERS = {
    "tr": (
        "ÖNEMLI UYARI: Bu öneriler yalnızca genel bilgi amaçlıdır ve profesyonel tıbbi tavsiyenin "
        "yerini tutmaz. Herhangi bir sağlık sorunu için mutlaka nitelikli bir sağlık uzmanına danışın."
    ),
    "en": (
        "IMPORTANT DISCLAIMER: These suggestions are for general information only and do not replace "
        "professional medical advice. Always consult with a qualified healthcare professional for any "
        "health concerns."
    ),
}

MODERATION_PREAMBLES = {
    "tr": (
        "Sen DoktorAi'sin, doğal ve bitkisel tedavi önerilerinde bulunan bir asistan. Kullanıcının "
        "sorularına sadece genel bilgi ve geleneksel bitki kullanımı hakkında bilgi ver. Kesinlikle "
        "teşhis koymayacaksın ve tıbbi tavsiye vermeyeceksin. Her cevabının sonunda şu uyarıyı ekle: "
        "\"{disclaimer}\""
    ),
    "en": (
        "You are DoktorAi, an assistant that provides natural and herbal treatment suggestions. Only "
        "provide general information about traditional plant uses. Never diagnose or give medical "
        "advice. Always end your response with: \"{disclaimer}\""
    ),
}

# Substituted for the assistant reply when the provider cannot answer
FALLBACK_MESSAGES = {
    "tr": (
        "Üzgünüm, şu anda yanıt veremiyorum. Lütfen daha sonra tekrar deneyin. ÖNEMLI UYARI: Bu "
        "öneriler yalnızca genel bilgi amaçlıdır ve profesyonel tıbbi tavsiyenin yerini tutmaz."
    ),
    "en": (
        "Sorry, I cannot respond right now. Please try again later. IMPORTANT DISCLAIMER: These "
        "suggestions are for general information only and do not replace professional medical advice."
    ),
}

USER_QUESTION_LABEL = "Kullanıcı sorusu"


def _lang(language: str) -> str:
    return language if language in DISCLAIMERS else "tr"


def disclaimer(language: str) -> str:
    return DISCLAIMERS[_lang(language)]


def fallback_message(language: str) -> str:
    return FALLBACK_MESSAGES[_lang(language)]


def build_health_safe_prompt(user_input: str, language: str) -> str:
    """Moderation preamble + user text, as sent in the first request part."""
    lang = _lang(language)
    system_prompt = MODERATION_PREAMBLES[lang].format(disclaimer=DISCLAIMERS[lang])
    return f"{system_prompt}\n\n{USER_QUESTION_LABEL}: {user_input}"
