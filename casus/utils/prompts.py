"""
Persona and user-facing text for Casus.
All French copy lives here — no hardcoded prompts elsewhere in the codebase.
"""

from __future__ import annotations


# ── Persona ──────────────────────────────────────────────────────────────────

# Presence of this phrase in a system message means the persona is already set.
CASUS_MARKER = "Tu es Casus"

SYSTEM_PROMPT = "\n".join(
    [
        f"{CASUS_MARKER}, un assistant de jeu de rôle (JdR) en français.",
        "Ton but: aider à créer des aventures, PNJ, intrigues, ambiances, règles maison, scènes, et à maîtriser des parties.",
        "Style: clair, vivant, concret, orienté action; propose des options; pose 1–3 questions quand une info manque.",
        "Ne révèle pas d'infos non demandées. Évite les pavés: utilise des listes courtes et des titres.",
        "Sécurité: pas de contenu illégal; si un sujet est sensible, recentre vers une alternative sûre.",
    ]
)


# ── Game profile ─────────────────────────────────────────────────────────────

PROFILE_HEADER = "Contexte de partie:"

MODE_LINES = {
    "mj": "Mode: MJ (aide à maîtriser, préparer, improviser).",
    "joueur": "Mode: Joueur (aide à incarner, proposer des actions, optimiser sans spoiler).",
}


def build_univers_line(univers: str) -> str:
    return f"Univers/ton: {univers}"


def build_style_line(style: str) -> str:
    return f"Contraintes de style: {style}"


# ── Commands ─────────────────────────────────────────────────────────────────

HELP_TEXT = "\n".join(
    [
        "Commandes Casus :",
        "- /roll 2d6+1  (ex: /roll d20, /roll 1d20 adv, /roll 1d20 dis)",
        "- /help",
    ]
)

ROLL_USAGE = "Utilisation: `/roll NdM+K` (ex: `/roll 2d6+1`, `/roll d20`, `/roll 1d20 adv`)."
ROLL_BAD_FORMAT = "Format invalide. Exemple: `/roll 2d6+1` ou `/roll d20`."
ROLL_INVALID = "Expression de dé invalide."
ROLL_COUNT_RANGE = "Nombre de dés hors limite (1–50)."
ROLL_FACES_RANGE = "Nombre de faces hors limite (2–1000)."
ROLL_ADV_UNSUPPORTED = (
    "Le mode `adv`/`dis` est supporté uniquement pour `/roll 1d20 adv` ou `/roll 1d20 dis`."
)


# ── Client ───────────────────────────────────────────────────────────────────

GREETING = "\n".join(
    [
        "Salut, je suis Casus.",
        "Dis-moi ce que tu veux préparer ou jouer (scénario, PNJ, scènes, tables, règles maison…).",
        "Astuce: essaie `/roll d20` ou `/help`.",
    ]
)

APOLOGY = "Désolé — je n’ai pas pu traiter ta demande. Réessaie dans un instant."
