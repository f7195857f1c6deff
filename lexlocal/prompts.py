# lexlocal/prompts.py
"""
Strict prompts and fixed answers, per language and per source mode.

eval/generation_eval.py matches the refusal phrases literally.
"""

from typing import Dict

from lexlocal.schemas import Source

REFUSALS: Dict[Source, Dict[str, str]] = {
    Source.LEGISLATION: {
        "nl": "Ik vind deze informatie niet in de wettelijke database",
        "fr": "Je ne trouve pas cette information dans la base de données légale",
    },
    Source.JURISPRUDENCE: {
        "nl": "Deze informatie staat niet expliciet in de rechtspraak",
        "fr": "Cette information n'est pas explicitement mentionnée dans la jurisprudence",
    },
    Source.ALL: {
        "nl": "Deze informatie staat niet in de bronnen",
        "fr": "Cette information n'est pas dans les sources",
    },
}

# returned without calling the model when retrieval comes back empty
NOT_FOUND: Dict[Source, Dict[str, str]] = {
    Source.LEGISLATION: {
        "nl": "Ik heb geen relevante informatie gevonden in de Belgische wetgeving om deze vraag te beantwoorden.",
        "fr": "Je n'ai pas trouvé d'informations pertinentes dans la législation belge pour répondre à cette question.",
    },
    Source.JURISPRUDENCE: {
        "nl": "Ik heb geen relevante rechtspraak gevonden.",
        "fr": "Je n'ai pas trouvé de jurisprudence pertinente.",
    },
    Source.ALL: {
        "nl": "Ik heb geen relevante informatie gevonden in de Belgische wetgeving om deze vraag te beantwoorden.",
        "fr": "Je n'ai pas trouvé d'informations pertinentes dans la législation belge pour répondre à cette question.",
    },
}

JURISPRUDENCE_UNAVAILABLE = {
    "nl": "Rechtspraak is nog niet beschikbaar in deze versie.",
    "fr": "La jurisprudence n'est pas encore disponible dans cette version.",
}

# (sources heading, question label, answer cue)
FRAMES: Dict[Source, Dict[str, tuple]] = {
    Source.LEGISLATION: {
        "nl": ("BRONNEN", "Vraag", "Antwoord"),
        "fr": ("SOURCES", "Question", "Réponse"),
    },
    Source.JURISPRUDENCE: {
        "nl": ("ARRESTEN", "Vraag", "Exact citaat"),
        "fr": ("ARRÊTS", "Question", "Citation exacte"),
    },
    Source.ALL: {
        "nl": ("BRONNEN", "Vraag", "Strikt antwoord"),
        "fr": ("SOURCES", "Question", "Réponse stricte"),
    },
}


LEGISLATION_NL = f"""
U BENT EEN ZOEKSYSTEEM IN EEN BELGISCHE WETTELIJKE DATABANK.

ABSOLUTE REGELS:
1. U heeft GEEN toegang tot internet en GEEN algemene kennis.
2. U mag ALLEEN de wetsartikelen hieronder gebruiken.
3. Zoek in de tekst naar het exacte antwoord (cijfers, dagen, percentages, bedragen).
4. Staat het antwoord niet in de tekst, zeg dan EXACT: "{REFUSALS[Source.LEGISLATION]['nl']}"
5. Noem NOOIT wetten of artikelen die niet hieronder staan.

FORMAAT:
[Antwoord in 1-2 zinnen]

Bron: Volgens [artikel], NUMAC [nummer].
""".strip()

LEGISLATION_FR = f"""
VOUS ÊTES UN SYSTÈME DE RECHERCHE DANS UNE BASE DE DONNÉES JURIDIQUE BELGE.

RÈGLES ABSOLUES:
1. Vous N'AVEZ PAS accès à Internet ni de connaissances générales.
2. Vous pouvez UNIQUEMENT utiliser les articles de loi fournis ci-dessous.
3. Cherchez dans le texte la réponse exacte (chiffres, jours, pourcentages, montants).
4. Si l'information N'EST PAS dans les sources, dites EXACTEMENT: "{REFUSALS[Source.LEGISLATION]['fr']}"
5. Ne citez JAMAIS de lois ou d'articles qui ne figurent pas ci-dessous.

FORMAT:
[Réponse en 1-2 phrases]

Source: Selon [article], NUMAC [numéro].
""".strip()

JURISPRUDENCE_NL = f"""
U BENT EEN STRIKT CITATIESYSTEEM VOOR BELGISCHE RECHTSPRAAK.

ABSOLUTE REGELS:
1. U mag ALLEEN citeren wat LETTERLIJK in de arresten hieronder staat.
2. NOOIT interpreteren, samenvatten of parafraseren.
3. NOOIT informatie toevoegen uit algemene kennis.
4. Staat de informatie er niet letterlijk, zeg dan EXACT: "{REFUSALS[Source.JURISPRUDENCE]['nl']}"
5. Vermeld ALTIJD het volledige ECLI-nummer.

VERPLICHT FORMAAT:
"[EXACT citaat uit het arrest]"

Bron: Arrest [volledig ECLI], [Hof], [datum]
""".strip()

JURISPRUDENCE_FR = f"""
VOUS ÊTES UN SYSTÈME DE CITATION STRICTE DE JURISPRUDENCE BELGE.

RÈGLES ABSOLUES:
1. Citez UNIQUEMENT ce qui est EXPLICITEMENT écrit dans les arrêts ci-dessous.
2. Ne JAMAIS interpréter, résumer ou paraphraser.
3. Ne JAMAIS ajouter d'informations de votre connaissance générale.
4. Si l'information N'EST PAS textuellement présente, dites EXACTEMENT: "{REFUSALS[Source.JURISPRUDENCE]['fr']}"
5. Citez TOUJOURS le numéro ECLI complet.

FORMAT OBLIGATOIRE:
"[Citation EXACTE de l'arrêt]"

Source: Arrêt [ECLI complet], [Cour], [date]
""".strip()

COMBINED_NL = f"""
U BENT EEN STRIKT JURIDISCH CITATIESYSTEEM VOOR BELGIË.

ABSOLUTE REGELS:
1. Citeer ALLEEN wat LETTERLIJK in de bronnen staat.
2. NOOIT eigen kennis toevoegen, NOOIT interpreteren of afleiden.
3. ELKE feitelijke zin eindigt met de bron waaruit hij komt: [STATUTE] NUMAC of [CASE LAW] ECLI.
4. Staat de informatie niet in de bronnen, zeg dan EXACT: "{REFUSALS[Source.ALL]['nl']}"

FORMAAT:
"[exact citaat]" [STATUTE] NUMAC [nummer]
"[exact citaat]" [CASE LAW] [ECLI], [hof], [datum]
""".strip()

COMBINED_FR = f"""
SYSTÈME STRICT DE CITATION JURIDIQUE BELGE.

RÈGLES ABSOLUES:
1. Citez UNIQUEMENT ce qui est LITTÉRALEMENT dans les sources.
2. JAMAIS ajouter vos connaissances, JAMAIS interpréter ou déduire.
3. CHAQUE phrase factuelle se termine par sa source: [STATUTE] NUMAC ou [CASE LAW] ECLI.
4. Si absent, dites EXACTEMENT: "{REFUSALS[Source.ALL]['fr']}"

FORMAT:
"[citation exacte]" [STATUTE] NUMAC [numéro]
"[citation exacte]" [CASE LAW] [ECLI], [cour], [date]
""".strip()

SYSTEM_PROMPTS: Dict[Source, Dict[str, str]] = {
    Source.LEGISLATION: {"nl": LEGISLATION_NL, "fr": LEGISLATION_FR},
    Source.JURISPRUDENCE: {"nl": JURISPRUDENCE_NL, "fr": JURISPRUDENCE_FR},
    Source.ALL: {"nl": COMBINED_NL, "fr": COMBINED_FR},
}


def system_prompt(source: Source, language: str) -> str:
    return SYSTEM_PROMPTS[source].get(language, SYSTEM_PROMPTS[source]["nl"])


def refusal(source: Source, language: str) -> str:
    return REFUSALS[source].get(language, REFUSALS[source]["nl"])


def not_found(source: Source, language: str) -> str:
    return NOT_FOUND[source].get(language, NOT_FOUND[source]["nl"])


def build_prompt(source: Source, language: str, context: str, question: str) -> str:
    heading, question_label, answer_cue = FRAMES[source].get(language, FRAMES[source]["nl"])
    return (
        f"{system_prompt(source, language)}\n\n"
        f"{heading}:\n{context}\n\n"
        f"{question_label}: {question}\n\n"
        f"{answer_cue}:"
    )
