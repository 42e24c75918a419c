"""초대 메일 번역 테이블.

Translation table for the team invitation email. Unknown languages and
regional variants without an entry fall back to their base language, then
to English.
"""

DEFAULT_LANGUAGE = "en"

_TRANSLATIONS: dict[str, dict[str, str]] = {
    "en": {
        "user_invited_you": "{user} invited you to join the team {team}",
        "invite_body": "You have been invited by {user} to join the team {team}. Follow the link below to get started.",
        "accept_invitation": "Accept invitation",
    },
    "es": {
        "user_invited_you": "{user} te invitó a unirte al equipo {team}",
        "invite_body": "{user} te ha invitado a unirte al equipo {team}. Sigue el enlace para empezar.",
        "accept_invitation": "Aceptar invitación",
    },
    "de": {
        "user_invited_you": "{user} hat Sie eingeladen, dem Team {team} beizutreten",
        "invite_body": "{user} hat Sie eingeladen, dem Team {team} beizutreten. Folgen Sie dem Link, um loszulegen.",
        "accept_invitation": "Einladung annehmen",
    },
    "fr": {
        "user_invited_you": "{user} vous a invité à rejoindre l'équipe {team}",
        "invite_body": "{user} vous a invité à rejoindre l'équipe {team}. Suivez le lien ci-dessous pour commencer.",
        "accept_invitation": "Accepter l'invitation",
    },
}


def get_translation(language: str | None) -> dict[str, str]:
    """언어 코드에 해당하는 번역 사전을 반환합니다.

    Resolve "pt-BR" style codes to "pt" before falling back to English.
    """
    if not language:
        return _TRANSLATIONS[DEFAULT_LANGUAGE]
    code = language.lower()
    if code in _TRANSLATIONS:
        return _TRANSLATIONS[code]
    base = code.replace("_", "-").split("-")[0]
    return _TRANSLATIONS.get(base, _TRANSLATIONS[DEFAULT_LANGUAGE])
