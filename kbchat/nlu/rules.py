"""Rule tables for query triage.

Every policy lives here as an ordered list of (tag, pattern) pairs so that
changing what counts as a greeting, a restricted topic or a contact request
never touches the classifier's control flow. The first matching rule wins.
"""
import re
from typing import List, Optional, Pattern, Tuple

Rule = Tuple[str, Pattern]


def _rules(table: List[Tuple[str, str]]) -> List[Rule]:
    return [(tag, re.compile(pattern, re.IGNORECASE)) for tag, pattern in table]


# Whole-message greetings across the supported languages
GREETING_RULES = _rules([
    ("en", r"^(hi+|hello+|hey+|hiya|howdy|greetings|good (morning|afternoon|evening|day))( there| everyone| all| team)?$"),
    ("en", r"^(how are you|how do you do|how's it going|hows it going)$"),
    ("en", r"^(what'?s up|sup|yo)$"),
    ("hi", r"^(namaste|namaskar|namaskaar|pranam|नमस्ते|नमस्कार)( ji)?$"),
    ("es", r"^(hola|buenos d[ií]as|buenas (tardes|noches))$"),
    ("fr", r"^(bonjour|bonsoir|salut)$"),
    ("de", r"^(hallo|guten (morgen|tag|abend)|servus)$"),
])

# Topics the assistant refuses regardless of tenant content
RESTRICTED_RULES = _rules([
    ("code", r"\b(write|generate|give me|show me)\b.*\bcode\b|\bprogramming\b|\b(javascript|python|html|css|sql)\b"),
    ("math", r"\bcalculate\b|\bmath(ematics)?\b|\bsolve\b.*\bequation\b|\bwhat\s+is\s+\d+\s*[-+*/x×÷]\s*\d+|^\s*\d+\s*[-+*/×÷]\s*\d+\s*=?\s*\??\s*$"),
    ("weather_time", r"\bweather\b|\bforecast\b|\bcurrent time\b|\bwhat time is it\b|\btime (is it )?now\b|\btoday'?s date\b|\bwhat('?s| is) the (date|time)\b"),
    ("translation", r"\btranslat(e|ion)\b|\bconvert\b.*\blanguage\b"),
    ("recipe", r"\brecipes?\b|\bhow to cook\b|\bcooking\b|\bingredients for\b"),
    ("medical", r"\bmedical advice\b|\bsymptoms?\b|\bdiagnos(e|is)\b|\bdisease\b|\bmedicines?\b|\bprescri(be|ption)\b"),
    ("legal", r"\blegal advice\b|\blawsuit\b|\battorney\b|\blawyer\b"),
    ("financial", r"\binvest(ment|ing)?\b|\bstock market\b|\bstocks\b|\bcrypto\b|\bbitcoin\b|\bfinancial advice\b"),
    ("homework", r"\bwrite\b.*\bessay\b|\bhomework\b|\bassignment\b|\bthesis\b"),
    ("opinion", r"\bpersonal opinion\b|\bwhat do you think\b|\byour opinion\b"),
])

RESTRICTED_MESSAGE = (
    "I'm sorry, but I can only help with questions related to our knowledge base. "
    "I cannot assist with general questions like coding, math calculations, or other topics "
    "outside my scope. Please ask me something related to the information in our uploaded documents."
)

# Keyword fallback for contact intent; phone is checked before email
CONTACT_INTENT_RULES = _rules([
    ("phone", r"\b(phone|number|mobile|telephone|call|whatsapp)\b"),
    ("email", r"\b(e-?mail|mail)\b"),
    ("general", r"\bcontact\b|\breach (you|us)\b|\bget in touch\b"),
])

CONTACT_TYPES = ("email", "phone", "general", "none")

# Stored questions that hold contact details, per contact type
CONTACT_QUESTION_RULES = {
    "phone": _rules([
        ("keyword", r"\b(phone|mobile|telephone|call|whatsapp)\b|\bcontact number\b"),
        ("number", r"\+?\d[\d\s()-]{7,}\d"),
    ]),
    "email": _rules([
        ("keyword", r"\be-?mail\b"),
        ("address", r"[\w.+-]+@[\w-]+\.[\w.]+"),
    ]),
    "general": _rules([
        ("keyword", r"\bcontact\b|\breach (you|us)\b|\bget in touch\b"),
        ("channel", r"\b(phone|e-?mail|address)\b"),
    ]),
}

# Coarse labels for terse (short) queries
SHORT_QUERY_LABELS = ("contact_email", "contact_phone", "website", "pricing", "appointment", "other")
SHORT_QUERY_RULES = _rules([
    ("contact_email", r"\b(e-?mail|mail)\b"),
    ("contact_phone", r"\b(phone|number|mobile|call)\b"),
    ("website", r"\b(website|site|url|link)\b"),
    ("pricing", r"\b(price|prices|pricing|cost|costs|fee|fees|charges?|plans?)\b"),
    ("appointment", r"\b(appointment|book|booking|schedule|slot)\b"),
])

# Cheap language hints used when the model cannot detect the language
LANGUAGE_RULES = _rules([
    ("hi", r"[ऀ-ॿ]"),
    ("hi", r"\b(namaste|kya|kaise|kaha|kitna|aap|hain|nahi)\b"),
    ("es", r"[¿¡ñ]|\b(hola|gracias|qué|cómo|dónde|cuál|cuánto|precio|horario)\b"),
    ("fr", r"\b(bonjour|merci|quel|quelle|combien|où|est-ce|pourquoi|horaires)\b"),
    ("de", r"ß|\b(hallo|danke|wie|wo|ist|preis|guten|öffnungszeiten)\b"),
])

# Labelling artifacts left over from Q&A extraction
QUESTION_LABEL_RE = re.compile(r"^\s*(?:Q|Question|प्रश्न)\s*\d*\s*[:.)-]\s*", re.IGNORECASE)
ANSWER_LABEL_RE = re.compile(r"(?:^|\n)\s*(?:A|Answer|उत्तर)\s*\d*\s*[:.)-]\s*", re.IGNORECASE)
# Same label inside a one-line "Q: ... A: ..." record; case-sensitive so plain prose is left alone
INLINE_ANSWER_LABEL_RE = re.compile(r"\s(?:A|Answer|उत्तर)\s*[:.)]\s+")

STOP_WORDS = {"the", "is", "at", "which", "on", "what", "who", "how", "when", "where", "why"}


def normalize_query(query: str) -> str:
    q = (query or "").strip().lower()
    q = re.sub(r"\s+", " ", q)
    return re.sub(r"[\s!.?,]+$", "", q)


def first_match(rules: List[Rule], text: str) -> Optional[str]:
    """Tag of the first rule whose pattern occurs in text, else None."""
    for tag, pattern in rules:
        if pattern.search(text or ""):
            return tag
    return None


def is_greeting(query: str) -> bool:
    return first_match(GREETING_RULES, normalize_query(query)) is not None


def restricted_topic(query: str) -> Optional[str]:
    return first_match(RESTRICTED_RULES, query)


def contact_type_from_keywords(query: str) -> str:
    return first_match(CONTACT_INTENT_RULES, query) or "none"


def question_matches_contact(question: str, contact_type: str) -> bool:
    return first_match(CONTACT_QUESTION_RULES.get(contact_type, []), question) is not None


def short_query_label(query: str) -> str:
    return first_match(SHORT_QUERY_RULES, query) or "other"


def guess_language(text: str) -> str:
    return first_match(LANGUAGE_RULES, text) or "en"


def extract_keywords(text: str, limit: int = 5) -> List[str]:
    """Lowercased words longer than two characters that are not stop words."""
    words = re.split(r"\W+", (text or "").lower())
    return [w for w in words if len(w) > 2 and w not in STOP_WORDS][:limit]


def significant_words(text: str) -> set:
    """Words longer than three characters, used to sanity-check rewrites."""
    return {w for w in re.split(r"\W+", (text or "").lower()) if len(w) > 3}
