"""
Voice Resume Parser - turns a speech-to-text transcript into a resume.

PURPOSE:
Kiosk applicants who do not carry a resume record a short voice introduction.
The transcript is split into sentences and matched against keyword lists
per language to fill a fixed-shape resume:

    {
        "personal_info": {"name": "...", "summary": "..."},
        "experience": [{"id": 1, "description": "..."}],
        "skills": ["..."],
        "education": [{"id": 1, "description": "..."}],
        "language": "en-US",
        "generated_at": "2025-01-01T00:00:00+00:00"
    }

Supported languages: en-US, hi-IN, kn-IN. Anything else uses en-US rules.
Parsing never fails - an empty transcript gives an empty resume.
"""

import re
from pathlib import Path
from typing import Dict, List

from jinja2 import Environment, FileSystemLoader, select_autoescape

from udyoga_setu.utils.timeutils import now_iso, parse_timestamp

DEFAULT_LANGUAGE = "en-US"
SUMMARY_LENGTH = 250
MAX_EXPERIENCE = 5
MAX_SKILLS = 10
MAX_EDUCATION = 3
MIN_SENTENCE_LENGTH = 10

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

_jinja = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"])
)


# ============================================================
# LANGUAGE DATA
# ============================================================

NAME_PATTERNS: Dict[str, List[str]] = {
    "en-US": [
        r"my name is (\w+(?:\s+\w+){0,3})",
        r"i am (\w+(?:\s+\w+){0,3})",
        r"this is (\w+(?:\s+\w+){0,3})",
        r"i['’]m (\w+(?:\s+\w+){0,3})",
        r"(\w+(?:\s+\w+){1,3}) speaking",
        r"(\w+(?:\s+\w+){1,3}) here",
    ],
    "hi-IN": [
        r"मेरा नाम (\S+(?:\s+\S+){0,3}) है",
        r"मैं (\S+(?:\s+\S+){0,3}) हूं",
        r"मैं (\S+(?:\s+\S+){0,3}) हूँ",
        r"मेरा नाम (\S+(?:\s+\S+){0,3})",
        r"(\S+(?:\s+\S+){0,3}) बोल रहा हूं",
        r"(\S+(?:\s+\S+){0,3}) बोल रही हूं",
    ],
    "kn-IN": [
        r"ನನ್ನ ಹೆಸರು (\S+(?:\s+\S+){0,3})",
        r"ನಾನು (\S+(?:\s+\S+){0,3})",
        r"ನನ್ನ ಹೆಸರು (\S+(?:\s+\S+){0,3}) ಆಗಿದೆ",
        r"(\S+(?:\s+\S+){0,3}) ಮಾತನಾಡುತ್ತಿದ್ದೇನೆ",
    ],
}

APPLICANT_PLACEHOLDER = {
    "hi-IN": "आवेदक",
    "kn-IN": "ಅರ್ಜಿದಾರ",
}

EXPERIENCE_KEYWORDS: Dict[str, List[str]] = {
    "en-US": [
        "experience", "worked", "work", "job", "company", "position",
        "responsible", "role", "employment", "career", "profession",
        "project", "managed", "led", "developed", "implemented", "created",
    ],
    "hi-IN": [
        "अनुभव", "काम", "नौकरी", "कंपनी", "पद", "कार्य", "जिम्मेदारी", "भूमिका",
        "रोजगार", "कैरियर", "पेशा", "परियोजना", "विकसित", "प्रबंधन", "कार्यान्वयन",
    ],
    "kn-IN": [
        "ಅನುಭವ", "ಕೆಲಸ", "ಉದ್ಯೋಗ", "ಕಂಪನಿ", "ಸ್ಥಾನ", "ಕಾರ್ಯ", "ಜವಾಬ್ದಾರಿ",
        "ಪಾತ್ರ", "ವೃತ್ತಿ", "ಯೋಜನೆ", "ನಿರ್ವಹಿಸಿದ",
    ],
}

SKILL_KEYWORDS: Dict[str, List[str]] = {
    "en-US": [
        "skill", "know", "good at", "proficient", "expert", "familiar with",
        "trained in", "knowledge of", "experienced in", "certified in",
        "ability to", "competent in",
    ],
    "hi-IN": [
        "कौशल", "जानता", "अच्छा हूँ", "निपुण", "विशेषज्ञ", "परिचित",
        "प्रशिक्षित", "ज्ञान", "अनुभवी", "प्रमाणित", "क्षमता", "योग्य",
        "सक्षम", "दक्ष", "कुशल",
    ],
    "kn-IN": [
        "ಕೌಶಲ್ಯ", "ತಿಳಿದಿರುವ", "ಪರಿಣತಿ", "ಜ್ಞಾನ", "ಅನುಭವಿ", "ಸಾಮರ್ಥ್ಯ",
        "ಕಲಿತ", "ಪ್ರಮಾಣಿತ", "ಚೆನ್ನಾಗಿ ಬಲ್ಲ", "ತರಬೇತಿ",
    ],
}

COMMON_SKILLS = [
    # Technical
    "java", "python", "javascript", "typescript", "html", "css", "react", "angular",
    "vue", "node", "express", "django", "spring", "php", "laravel", "dotnet", "c#",
    "azure", "aws", "gcp", "cloud", "devops", "docker", "kubernetes", "jenkins",
    "sql", "mysql", "postgresql", "mongodb", "database", "nosql", "git",
    "android", "ios", "mobile", "web", "ui", "ux", "design", "figma",
    "data", "analysis", "ai", "ml", "machine learning", "deep learning",
    # Soft skills
    "communication", "leadership", "teamwork", "management", "project management",
    "agile", "scrum", "problem solving", "analytical", "creative", "critical thinking",
    "time management", "organization", "collaboration", "presentation", "customer service",
    "flexibility", "adaptability", "negotiation", "conflict resolution",
]

LANGUAGE_SKILLS: Dict[str, List[str]] = {
    "hi-IN": [
        "संचार", "नेतृत्व", "टीम वर्क", "प्रबंधन", "परियोजना प्रबंधन",
        "एजाइल", "स्क्रम", "समस्या समाधान", "विश्लेषणात्मक", "रचनात्मक",
        "समय प्रबंधन", "संगठन", "सहयोग", "प्रस्तुति", "ग्राहक सेवा",
        "लचीलापन", "अनुकूलन क्षमता", "बातचीत", "संघर्ष समाधान",
    ],
    "kn-IN": [
        "ಸಂವಹನ", "ನಾಯಕತ್ವ", "ತಂಡದ ಕೆಲಸ", "ನಿರ್ವಹಣೆ", "ಯೋಜನಾ ನಿರ್ವಹಣೆ",
        "ಅಜೈಲ್", "ಸ್ಕ್ರಮ್", "ಸಮಸ್ಯೆ ಪರಿಹಾರ", "ವಿಶ್ಲೇಷಣಾತ್ಮಕ", "ಸೃಜನಶೀಲ",
        "ಸಮಯ ನಿರ್ವಹಣೆ", "ಸಂಘಟನೆ", "ಸಹಯೋಗ", "ಪ್ರಸ್ತುತಿ", "ಗ್ರಾಹಕ ಸೇವೆ",
    ],
}

EDUCATION_KEYWORDS: Dict[str, List[str]] = {
    "en-US": [
        "education", "degree", "college", "university", "studied", "graduated",
        "diploma", "certification", "school", "institute", "qualification",
        "bachelor", "master", "phd", "doctorate", "mba", "engineering",
        "science", "arts", "commerce", "btech", "mtech", "bsc", "msc", "ba", "ma",
    ],
    "hi-IN": [
        "शिक्षा", "डिग्री", "कॉलेज", "विश्वविद्यालय", "पढ़ाई", "स्नातक",
        "डिप्लोमा", "प्रमाणपत्र", "स्कूल", "संस्थान", "योग्यता",
        "बैचलर", "मास्टर", "पीएचडी", "डॉक्टरेट", "एमबीए", "इंजीनियरिंग",
        "विज्ञान", "कला", "वाणिज्य", "बीटेक", "एमटेक", "बीएससी", "एमएससी", "बीए", "एमए",
    ],
    "kn-IN": [
        "ವಿದ್ಯಾಭ್ಯಾಸ", "ಪದವಿ", "ಕಾಲೇಜು", "ವಿಶ್ವವಿದ್ಯಾಲಯ", "ಅಧ್ಯಯನ", "ಪದವೀಧರ",
        "ಡಿಪ್ಲೊಮಾ", "ಪ್ರಮಾಣಪತ್ರ", "ಶಾಲೆ", "ಸಂಸ್ಥೆ", "ಅರ್ಹತೆ",
        "ಬ್ಯಾಚೆಲರ್", "ಮಾಸ್ಟರ್", "ಪಿಎಚ್‌ಡಿ", "ಡಾಕ್ಟರೇಟ್", "ಎಂಬಿಎ", "ಇಂಜಿನಿಯರಿಂಗ್",
        "ವಿಜ್ಞಾನ", "ಕಲೆ", "ವಾಣಿಜ್ಯ",
    ],
}

LANGUAGE_NAMES = {
    "en-US": "English",
    "hi-IN": "Hindi (हिन्दी)",
    "kn-IN": "Kannada (ಕನ್ನಡ)",
}


# ============================================================
# PARSER
# ============================================================

def _for_language(table: dict, language: str):
    return table.get(language, table[DEFAULT_LANGUAGE])


def _sentences(text: str) -> List[str]:
    return re.split(r"[.!?।]+", text)


def _unique(items: List[str]) -> List[str]:
    return list(dict.fromkeys(items))


def _keyword_pattern(keywords: List[str]):
    # keywords match at the start of a word: "work" finds "worked", "ma" skips "kumar"
    alternatives = "|".join(re.escape(k) for k in sorted(keywords, key=len, reverse=True))
    return re.compile(r"(?<!\w)(?:" + alternatives + ")", re.IGNORECASE)


def _keyword_sentences(text: str, keywords: List[str], limit: int) -> List[dict]:
    """Sentences mentioning any keyword, de-duplicated, as numbered entries."""
    pattern = _keyword_pattern(keywords)
    matches = []
    for sentence in _sentences(text):
        if pattern.search(sentence):
            stripped = sentence.strip()
            if len(stripped) > MIN_SENTENCE_LENGTH:
                matches.append(stripped)
    return [
        {"id": i + 1, "description": description}
        for i, description in enumerate(_unique(matches)[:limit])
    ]


def extract_name(text: str, language: str) -> str:
    for pattern in _for_language(NAME_PATTERNS, language):
        match = re.search(pattern, text, re.IGNORECASE)
        if match and match.group(1):
            return match.group(1).strip()

    # People usually open with their name
    first_sentence = re.split(r"[.!?;।]", text)[0]
    first_words = " ".join(first_sentence.split()[:3])
    if len(first_words) > 3:
        return first_words

    return APPLICANT_PLACEHOLDER.get(language, "Applicant")


def extract_experience(text: str, language: str) -> List[dict]:
    return _keyword_sentences(text, _for_language(EXPERIENCE_KEYWORDS, language), MAX_EXPERIENCE)


def extract_education(text: str, language: str) -> List[dict]:
    return _keyword_sentences(text, _for_language(EDUCATION_KEYWORDS, language), MAX_EDUCATION)


def extract_skills(text: str, language: str) -> List[str]:
    keyword_pattern = _keyword_pattern(_for_language(SKILL_KEYWORDS, language))
    known_skills = COMMON_SKILLS + LANGUAGE_SKILLS.get(language, [])

    # Sentences that talk about skills
    skill_sentences = []
    for sentence in _sentences(text):
        if keyword_pattern.search(sentence):
            skill_sentences.append(sentence.strip())

    # Known skills named directly, with the clause they appear in
    direct_skills = []
    for skill in known_skills:
        pattern = r"[^.!?;।]*(?<!\w)" + re.escape(skill) + r"(?!\w)[^.!?;।]*"
        match = re.search(pattern, text, re.IGNORECASE)
        if match:
            direct_skills.append(match.group(0).strip() or skill)

    return _unique([s for s in skill_sentences + direct_skills if s])[:MAX_SKILLS]


def parse_transcript_to_resume(text: str, language: str = DEFAULT_LANGUAGE) -> dict:
    """
    Build a resume from a voice transcript.

    Args:
        text: Speech-to-text transcript (any length, may be empty)
        language: BCP-47 tag of the transcript (en-US, hi-IN, kn-IN)

    Returns:
        Resume dict (see module docstring)
    """
    text = text or ""
    clean_text = re.sub(r"\s+", " ", text).strip()

    return {
        "personal_info": {
            "name": extract_name(clean_text, language),
            "summary": text[:SUMMARY_LENGTH].strip() + "...",
        },
        "experience": extract_experience(clean_text, language),
        "skills": extract_skills(clean_text, language),
        "education": extract_education(clean_text, language),
        "language": language,
        "generated_at": now_iso(),
    }


def detect_language(text: str) -> str:
    """Pick the dominant script: Devanagari -> hi-IN, Kannada -> kn-IN, else en-US."""
    hindi = len(re.findall(r"[\u0900-\u097F]", text))
    kannada = len(re.findall(r"[\u0C80-\u0CFF]", text))
    english = len(re.findall(r"[a-zA-Z]", text))

    if hindi > kannada and hindi > english * 0.1:
        return "hi-IN"
    if kannada > hindi and kannada > english * 0.1:
        return "kn-IN"
    return DEFAULT_LANGUAGE


def get_language_name(language: str) -> str:
    return LANGUAGE_NAMES.get(language, language)


def format_resume_as_html(resume: dict, applicant_name: str) -> str:
    """Render the parsed resume as a standalone HTML document."""
    generated = parse_timestamp(resume.get("generated_at")) if resume.get("generated_at") else None
    template = _jinja.get_template("voice_resume.html")
    return template.render(
        name=applicant_name or resume["personal_info"].get("name"),
        summary=resume["personal_info"].get("summary", ""),
        experience=resume.get("experience", []),
        skills=resume.get("skills", []),
        education=resume.get("education", []),
        language_name=get_language_name(resume.get("language", DEFAULT_LANGUAGE)),
        generated_on=generated.strftime("%d/%m/%Y") if generated else ""
    )
