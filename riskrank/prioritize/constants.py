"""Constants for the prioritization engine."""

# Ranked output is always a Top N
TOP_N = 10

# Findings submitted to the LLM in one request (first N, input order)
MAX_AI_FINDINGS = 50

# Snippet length sent to the LLM
MAX_SNIPPET_CHARS = 500

# Fallback scoring: base score by lower-cased scanner severity
BASE_SCORES = {
    "error": 50,
    "critical": 50,
    "warning": 20,
    "medium": 20,
}
DEFAULT_BASE_SCORE = 5

# Injection, crypto, secrets, RCE, auth
HIGH_RISK_KEYWORDS = (
    "injection",
    "sql",
    "command",
    "exec",
    "crypto",
    "jwt",
    "auth",
    "password",
    "secret",
    "token",
    "xss",
    "csrf",
    "rce",
)
HIGH_RISK_BONUS = 30

# DoS, config, information disclosure
MEDIUM_RISK_KEYWORDS = (
    "dos",
    "regex",
    "config",
    "disclosure",
    "leak",
    "ssrf",
    "cors",
)
MEDIUM_RISK_BONUS = 15

HIGH_CONFIDENCE_KEYS = {"error", "critical"}

UNKNOWN_TITLE = "UNKNOWN VULNERABILITY"
FALLBACK_BUSINESS_IMPACT = (
    "Not evaluated by AI. Ranked by scanner severity and risk keywords."
)
FALLBACK_REMEDIATION = (
    "Review the flagged code and apply the scanner rule's recommended fix."
)
