"""
Guardrail rule data.

Pattern sources are plain strings compiled once by rag_service.guardrails
(case-insensitive). Bump RULES_VERSION whenever a list changes.
"""

RULES_VERSION = "2024.03.1"

# Attempts to override system behaviour
PROMPT_INJECTION_PATTERNS = (
    r"ignore\s+(all\s+)?(previous\s+|prior\s+)?(instructions|commands|prompts)",
    r"forget\s+(all\s+)?(previous\s+|prior\s+)?(instructions|commands|prompts)",
    r"disregard\s+(all\s+)?(previous\s+|prior\s+)?(instructions|commands|prompts)",
    r"reveal\s+(your\s+|the\s+)?(system\s+prompt|instructions|prompt)",
    r"show\s+(me\s+)?(your\s+|the\s+)?(system\s+prompt|instructions)",
    r"what\s+(are\s+|is\s+)(your\s+|the\s+)?(system\s+prompt|instructions)",
    r"act\s+as\s+(if\s+)?you\s+(are|were)",
    r"pretend\s+(to\s+be|you\s+are)",
    r"roleplay\s+as",
    r"you\s+are\s+now",
    r"new\s+instructions?:",
    r"system\s*:\s*",
)

# Regulated identifiers and secrets, Portuguese and English
SENSITIVE_DATA_PATTERNS = (
    r"\b(cpfs?|cnpjs?|rgs?|ssn|social\s+security)\b",
    r"\b(senhas?|passwords?)\b",
    r"credit\s+cards?(\s+numbers?)?",
    r"\b(cartões?\s+de\s+crédito|números?\s+de\s+cart[ãa]o)\b",
    r"\b(chaves?\s+privadas?|private\s+keys?|api\s+keys?|tokens?\s+secretos?)\b",
)

# Case-insensitive substrings that place a question in the educational domain
DOMAIN_KEYWORDS = (
    "vertex",
    "gcp",
    "neo4j",
    "funil",
    "lead",
    "inscrito",
    "matriculado",
    "aprovado",
    "reprovado",
    "pma",
    "seletivo",
    "rag",
    "llm",
    "embedding",
    "citações",
    "groundedness",
    "latência",
    "custo",
    "token",
    "modelo",
    "educacional",
    "aluno",
    "curso",
    "graph",
    "banco de dados",
    "pipeline",
    "agente",
)

# Greetings and small talk
GENERIC_PATTERNS = (
    r"^(olá|oi|hello|hi)\s*[!?.]?$",
    r"como\s+(você\s+)?está",
    r"qual\s+(é\s+)?seu\s+nome",
    r"quem\s+(é\s+|criou)\s+você",
)

# System-level framing that must not appear in generated answers
SYSTEM_LEAK_PATTERNS = (
    r"as\s+an\s+ai\s+(language\s+)?model",
    r"i\s+am\s+(programmed|designed|trained)\s+to",
    r"my\s+(system\s+prompt|instructions)\s+(is|are)",
)
