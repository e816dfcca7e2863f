"""Project-wide constants."""

from pathlib import Path

# -- Base client defaults ---------------------------------------------------
DEFAULT_TIMEOUT: float = 15.0
DEFAULT_MAX_RETRIES: int = 1

# -- Local storage ----------------------------------------------------------
_USER_DIR: Path = Path.home() / ".medilook"
DEFAULT_HISTORY_PATH: Path = _USER_DIR / "search_history.json"
DEFAULT_LABEL_CACHE_DIR: Path = _USER_DIR / "_cache"
LABEL_CACHE_TTL: int = 86400  # 1 day in seconds

# -- openFDA drug label -----------------------------------------------------
OPENFDA_BASE_URL: str = "https://api.fda.gov/drug"
OPENFDA_LABEL_PATH: str = "/label.json"
OPENFDA_MAX_LIMIT: int = 1000
PRIMARY_SEARCH_LIMIT: int = 10
ALTERNATIVE_SEARCH_LIMIT: int = 20

# -- Search history / orchestration -----------------------------------------
HISTORY_CAPACITY: int = 20
SEARCH_DEBOUNCE_SECONDS: float = 0.3

# -- Placeholder text -------------------------------------------------------
NO_DESCRIPTION: str = "No description available"
FALLBACK_DESCRIPTION: str = "No detailed information available for this medication."
CONSULT_PROVIDER: str = "Consult your healthcare provider"
CONSULT_PROVIDER_DOSAGE: str = "Consult your healthcare provider for dosage information"
CONSULT_PROVIDER_WARNING: str = "Please consult your healthcare provider"
CONSULT_PROVIDER_SIDE_EFFECTS: str = "Consult healthcare provider for side effects"
CONSULT_PROVIDER_SHORT: str = "Consult healthcare provider"
TAKE_AS_DIRECTED: str = "Take as directed by your healthcare provider"

# -- Brand/generic synonyms tried before the raw query -----------------------
DRUG_ALIASES: dict[str, list[str]] = {
    "paracetamol": ["acetaminophen", "tylenol", "panadol"],
    "acetaminophen": ["paracetamol", "tylenol", "panadol"],
}

# -- Prescription text (OCR) extraction -------------------------------------
PRESCRIPTION_INDICATORS: tuple[str, ...] = (
    "rx",
    "prescribed",
    "prescription",
    "medication",
)
# A token containing any of these ends the name portion of a line
DOSAGE_STOP_MARKERS: tuple[str, ...] = (
    "mg",
    "tablet",
    "capsule",
    "tid",
    "bid",
    "daily",
)
# Tokens containing any of these are dropped while accumulating a name
ADMIN_NOISE_WORDS: tuple[str, ...] = (
    "patient",
    "name",
    "address",
    "date",
    "dr.",
    "prescribed",
)
# Whole candidates that are never searched
GENERIC_CANDIDATE_WORDS: frozenset[str] = frozenset(
    {"tablet", "capsule", "dose", "take"}
)
MIN_CANDIDATE_LENGTH: int = 3

# -- Dosage extraction ------------------------------------------------------
SIMPLE_DOSAGE_PATTERNS: tuple[str, ...] = (
    "take one tablet",
    "take 1 tablet",
    "take two tablets",
    "take 2 tablets",
    "one capsule",
    "1 capsule",
    "two capsules",
    "2 capsules",
    "mg every",
    "tablet every",
    "capsule every",
)
DOSAGE_FREQUENCY_CUES: tuple[str, ...] = ("every", "times", "daily", "hours")
DOSAGE_INSTRUCTION_VERBS: tuple[str, ...] = ("take", "recommended")
DOSAGE_UNIT_WORDS: tuple[str, ...] = ("mg", "tablet", "capsule")
MAX_DOSAGE_SENTENCE_LENGTH: int = 100

# -- Side-effect extraction -------------------------------------------------
SIDE_EFFECT_KEYWORDS: tuple[str, ...] = (
    "headache",
    "nausea",
    "dizziness",
    "drowsiness",
    "vomiting",
    "diarrhea",
    "pain",
    "rash",
    "fatigue",
    "stomach",
)
SIDE_EFFECT_EXCLUSIONS: tuple[str, ...] = (
    "following",
    "include",
    "including",
    "such as",
    "may",
    "can",
)
SIDE_EFFECT_EXCLUDED_PREFIXES: tuple[str, ...] = ("the", "these")
MAX_SIDE_EFFECTS: int = 4

# -- User-facing messages ---------------------------------------------------
NO_RESULTS_MESSAGE: str = "No results found for '{query}'"
SEARCH_ERROR_MESSAGE: str = "Error searching for medication: {error}"
NO_CANDIDATES_MESSAGE: str = "No medicine names found in the prescription"
