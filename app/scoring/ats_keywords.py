"""Deterministic keyword extraction and matching for ATS scoring.

Extraction walks a job description in a fixed order (title, required,
responsibilities, nice-to-have, technologies, action verbs, frequency fill) so
that the same JD always yields the same keyword list. Matching tries exact,
stem and synonym matches in that order.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Literal

SectionType = Literal["required", "niceToHave", "responsibilities", "about", "unknown"]
KeywordPriority = Literal["title", "required", "responsibilities", "niceToHave", "general"]
MatchType = Literal["exact", "stem", "synonym"]

STOPWORDS = frozenset(
    {
        # articles and pronouns
        "a", "an", "the", "i", "me", "my", "myself", "we", "our", "ours", "ourselves",
        "you", "your", "yours", "yourself", "yourselves", "he", "him", "his", "himself",
        "she", "her", "hers", "herself", "it", "its", "itself", "they", "them", "their",
        "theirs", "themselves", "what", "which", "who", "whom", "this", "that", "these",
        "those",
        # auxiliaries
        "am", "is", "are", "was", "were", "be", "been", "being", "have", "has", "had",
        "having", "do", "does", "did", "doing", "would", "should", "could", "ought",
        "will", "shall", "can", "may", "might", "must",
        # prepositions
        "at", "by", "for", "from", "in", "into", "of", "on", "to", "with", "about",
        "above", "across", "after", "against", "along", "among", "around", "before",
        "behind", "below", "beneath", "beside", "between", "beyond", "during", "except",
        "inside", "near", "off", "outside", "over", "past", "since", "through",
        "throughout", "toward", "under", "until", "up", "upon", "within", "without",
        # conjunctions
        "and", "but", "or", "nor", "so", "yet", "both", "either", "neither", "not",
        "only", "own", "same", "than", "too", "very", "just", "also",
        # JD boilerplate
        "ability", "able", "work", "working", "company", "team", "role", "position",
        "opportunity", "looking", "seeking", "join", "offer", "including", "etc",
        "related", "relevant", "strong", "excellent", "good", "great", "proven",
        "demonstrated", "successful", "effective", "required", "requirements",
        "responsibilities", "qualifications", "preferred", "minimum",
        "ensure", "provide", "support", "help", "need", "needs", "make",
        "proficiency", "proficient", "understanding", "familiarity", "familiar",
        "knowledge", "experience", "expertise", "exposure", "contributions",
        "passion", "passionate", "enthusiasm", "comfortable", "competence",
        "competent", "skilled", "capable", "hands-on", "background",
        # time
        "years", "year", "months", "month", "days", "day", "time", "times",
    }
)

SKILL_SYNONYMS: dict[str, tuple[str, ...]] = {
    "cloud": ("gcp", "aws", "azure", "cloud-native", "cloud infrastructure", "google cloud", "amazon web services"),
    "gcp": ("google cloud platform", "google cloud", "gke", "cloud run", "bigquery"),
    "aws": ("amazon web services", "ec2", "s3", "lambda", "eks", "cloudwatch", "sagemaker"),
    "azure": ("microsoft azure", "azure devops", "aks", "azure functions"),
    "leadership": ("led", "leading", "leader", "managed", "managing", "directed", "oversaw", "headed", "spearheaded"),
    "management": ("manager", "managing", "managed", "supervising", "supervisor", "oversight"),
    "engineering manager": ("tech lead manager", "engineering lead", "eng manager", "engineering mgr"),
    "director": ("director of engineering", "engineering director", "director, engineering"),
    "people management": ("people manager", "team management", "managing people", "direct reports"),
    "mentoring": ("mentorship", "coaching", "career development", "growing engineers"),
    "platform": ("platform engineering", "internal platform", "developer platform", "devex", "infrastructure"),
    "infrastructure": ("infra", "cloud infrastructure", "platform infrastructure"),
    "devops": ("devex", "developer experience", "developer productivity", "developer tools"),
    "sre": ("site reliability", "reliability engineering", "platform reliability"),
    "system design": ("systems design", "architecture design", "technical design"),
    "kubernetes": ("k8s", "gke", "eks", "aks", "container orchestration"),
    "docker": ("containers", "containerization", "containerized"),
    "terraform": ("infrastructure as code", "iac", "pulumi", "hcl"),
    "ci/cd": ("cicd", "continuous integration", "continuous deployment", "continuous delivery", "pipelines"),
    "github actions": ("gh actions", "github workflows"),
    "python": ("py", "python3"),
    "javascript": ("js", "node", "nodejs", "typescript", "ecmascript"),
    "typescript": ("ts", "node typescript"),
    "java": ("jvm", "spring", "spring boot"),
    "go": ("golang", "go lang"),
    "c++": ("cpp", "c plus plus"),
    "ruby": ("rails", "ruby on rails"),
    "agile": ("scrum", "kanban", "sprint", "agile methodology", "agile development"),
    "microservices": ("microservice", "service-oriented", "distributed services"),
    "distributed systems": ("distributed computing", "distributed architecture"),
    "api": ("api design", "rest", "restful", "graphql", "grpc", "api development"),
    "sql": ("mysql", "postgresql", "postgres", "database", "rdbms"),
    "nosql": ("mongodb", "dynamodb", "cassandra", "redis"),
    "observability": ("monitoring", "logging", "tracing", "metrics", "opentelemetry", "prometheus", "grafana"),
    "monitoring": ("observability", "alerting", "dashboards"),
    "stakeholder management": ("stakeholder alignment", "cross-functional", "executive communication"),
    "communication": ("written communication", "verbal communication", "presentation"),
    "healthcare": ("health tech", "healthtech", "medical", "clinical", "hipaa"),
    "fintech": ("financial technology", "finance", "banking", "payments"),
    "machine learning": ("ml", "deep learning", "neural networks", "model training", "ml engineering"),
    "artificial intelligence": ("ai", "generative ai", "gen ai", "llm", "large language models"),
    "data science": ("data scientist", "statistical modeling", "predictive analytics"),
    "nlp": ("natural language processing", "text mining", "language models"),
    "data pipeline": ("etl", "data ingestion", "data workflow", "data orchestration"),
    "data warehouse": ("data lake", "data lakehouse", "olap", "dimensional modeling"),
    "apache kafka": ("kafka", "kafka streams", "event streaming"),
    "security": ("cybersecurity", "infosec", "information security", "appsec"),
    "compliance": ("soc2", "soc 2", "gdpr", "hipaa", "pci dss", "iso 27001"),
    "product management": ("product manager", "product owner", "product strategy"),
    "roadmap": ("product roadmap", "technology roadmap", "strategic planning"),
    "frontend": ("front-end", "front end", "client-side", "ui development"),
    "react": ("reactjs", "react.js", "react hooks", "react native"),
    "testing": ("test automation", "qa", "quality assurance", "test engineering"),
    "unit testing": ("unit tests", "test-driven development", "tdd"),
    "project management": ("program management", "delivery management", "project planning"),
}


def _build_synonym_reverse_index() -> dict[str, tuple[str, ...]]:
    index: dict[str, list[str]] = {}
    for canonical, synonyms in SKILL_SYNONYMS.items():
        for synonym in synonyms:
            index.setdefault(synonym.lower(), []).append(canonical)
    return {key: tuple(value) for key, value in index.items()}


SYNONYM_REVERSE_INDEX = _build_synonym_reverse_index()

KNOWN_PHRASES = frozenset(
    {
        "machine learning", "deep learning", "neural networks", "natural language processing",
        "computer vision", "data science", "artificial intelligence", "generative ai",
        "large language models", "model training", "ml engineering", "feature engineering",
        "data pipeline", "data warehouse", "data lake", "data engineering", "data modeling",
        "data governance", "data quality", "data analytics", "big data", "data processing",
        "system design", "systems design", "distributed systems", "microservices architecture",
        "event-driven architecture", "domain-driven design", "api design", "api development",
        "technical architecture", "solution architecture", "high availability", "fault tolerance",
        "load balancing", "cloud infrastructure", "infrastructure as code", "cloud-native",
        "cloud migration", "container orchestration", "platform engineering", "developer platform",
        "google cloud platform", "amazon web services", "microsoft azure", "site reliability",
        "reliability engineering", "continuous integration", "continuous deployment",
        "continuous delivery", "github actions", "build automation", "deployment automation",
        "configuration management", "engineering manager", "engineering director", "tech lead",
        "technical lead", "people management", "team management", "team building",
        "performance management", "stakeholder management", "cross-functional", "direct reports",
        "product management", "product manager", "program management", "project management",
        "change management", "talent development", "software engineering", "software development",
        "software architecture", "full stack", "full-stack", "back end", "back-end", "front end",
        "front-end", "test-driven development", "code review", "technical debt",
        "agile development", "agile methodology", "design patterns", "functional programming",
        "version control", "user interface", "user experience", "design system",
        "component library", "responsive design", "web development", "mobile development",
        "react native", "information security", "application security", "threat modeling",
        "access control", "identity management", "test automation", "quality assurance",
        "integration testing", "end-to-end testing", "unit testing", "performance testing",
        "database design", "schema design", "query optimization", "api gateway", "service mesh",
        "message queue", "event streaming", "business intelligence", "user research",
        "digital transformation", "technical strategy", "technology roadmap", "strategic planning",
        "open source", "risk management", "distributed tracing", "incident management", "on-call",
        "software engineer", "senior engineer", "staff engineer", "principal engineer",
        "engineering lead", "data engineer", "data scientist", "data analyst",
        "solutions architect", "cloud architect", "devops engineer", "security engineer",
        "frontend engineer", "backend engineer", "machine learning engineer", "platform engineer",
    }
)

_SORTED_PHRASES = sorted(KNOWN_PHRASES, key=len, reverse=True)

TECH_KEYWORDS = frozenset(
    {
        "gcp", "aws", "azure", "cloud", "kubernetes", "k8s", "docker", "terraform",
        "ansible", "pulumi", "cloudformation",
        "python", "java", "javascript", "typescript", "go", "golang", "rust", "cpp",
        "csharp", "dotnet", "ruby", "scala", "kotlin", "swift",
        "react", "reactjs", "angular", "vue", "node", "nodejs", "django", "flask",
        "spring", "rails", "express", "fastapi", "nextjs",
        "sql", "postgresql", "mysql", "mongodb", "redis", "elasticsearch", "kafka",
        "spark", "hadoop", "bigquery", "snowflake", "databricks",
        "jenkins", "github", "gitlab", "bitbucket", "circleci", "argocd",
        "prometheus", "grafana", "datadog", "splunk", "pagerduty", "opentelemetry",
        "rest", "graphql", "grpc", "websockets", "http", "tcp",
        "oauth", "jwt", "ssl", "tls", "sso", "iam",
        "agile", "scrum", "kanban", "devops", "sre", "cicd",
        "machine learning", "deep learning", "data pipeline", "data warehouse",
        "infrastructure as code", "system design", "distributed systems",
        "github actions", "site reliability",
    }
)

ACTION_VERBS = frozenset(
    {
        "led", "managed", "directed", "oversaw", "headed", "supervised", "mentored",
        "coached", "guided", "coordinated", "orchestrated", "spearheaded",
        "achieved", "delivered", "accomplished", "completed", "exceeded", "surpassed",
        "built", "created", "designed", "developed", "established", "founded",
        "implemented", "launched", "initiated", "introduced",
        "improved", "enhanced", "optimized", "streamlined", "accelerated", "increased",
        "reduced", "decreased", "transformed", "modernized", "upgraded",
        "architected", "planned", "pioneered", "innovated",
        "collaborated", "partnered", "aligned", "unified", "integrated",
        "engineered", "automated", "scaled", "migrated", "deployed", "configured",
    }
)

_REQUIRED_SECTION_MARKERS = (
    "required", "requirements", "must have", "minimum qualifications",
    "what you bring", "what we require", "essential", "mandatory",
    "what you'll need", "qualifications", "what we're looking for",
    "you should have", "key skills", "core requirements",
    "basic qualifications", "you will need", "key qualifications",
)

NICE_TO_HAVE_MARKERS = (
    "nice to have", "preferred", "bonus", "plus", "ideal", "desired",
    "additionally", "preferred qualifications", "it would be great if",
    "extra credit", "nice-to-have", "additional qualifications",
    "desirable", "a plus", "advantageous",
)

_RESPONSIBILITIES_MARKERS = (
    "responsibilities", "what you'll do", "what you will do",
    "your role", "the role", "job duties", "key responsibilities",
    "day to day", "day-to-day", "in this role", "you will",
    "duties", "scope", "about the role", "role overview",
)

_ABOUT_SECTION_MARKERS = (
    "about us", "about the company", "who we are", "our mission",
    "company overview", "about the team", "why join",
    "what we offer", "benefits", "perks", "compensation",
)

_STEM_SUFFIXES = (
    "ational", "tional", "ization", "ousness", "iveness", "fulness",
    "ation", "ness", "ment", "able", "ible", "ance", "ence", "ings",
    "ing", "ful", "ous", "ive", "ity", "ies", "ion", "ed", "er", "ly", "s",
)

_SPECIAL_TERMS = (
    (re.compile(r"c\+\+"), "cpp"),
    (re.compile(r"c#"), "csharp"),
    (re.compile(r"\.net"), "dotnet"),
    (re.compile(r"node\.js"), "nodejs"),
    (re.compile(r"react\.js"), "reactjs"),
    (re.compile(r"vue\.js"), "vuejs"),
    (re.compile(r"ci/cd"), "cicd"),
)
_TOKEN_SPLIT_RE = re.compile(r"[^a-z0-9-]+")
_WHITESPACE_JOIN = r"\s+"

_MARKDOWN_HEADER_RE = re.compile(r"^#{1,3}\s+")
_BOLD_HEADER_RE = re.compile(r"^\*\*[^*]+\*\*\s*$")
_CAPS_HEADER_RE = re.compile(r"^[A-Z][A-Z\s/&-]{3,}$")
_COLON_HEADER_RE = re.compile(r"^[A-Za-z][A-Za-z\s'’-]{2,}:\s*$")

_ROLE_RE = re.compile(
    r"\b(engineer|manager|director|lead|senior|staff|principal|architect|developer|analyst|"
    r"scientist|designer|head|vp|vice president|coordinator|administrator|specialist|"
    r"consultant|strategist)\b",
    re.IGNORECASE,
)
_TITLE_LABEL_PATTERNS = (
    re.compile(r"job title:\s*([^\n]+)", re.IGNORECASE),
    re.compile(r"position:\s*([^\n]+)", re.IGNORECASE),
    re.compile(r"role:\s*([^\n]+)", re.IGNORECASE),
    re.compile(r"title:\s*([^\n]+)", re.IGNORECASE),
    re.compile(r"hiring for:\s*([^\n]+)", re.IGNORECASE),
    re.compile(r"we are hiring[^:]*:\s*([^\n]+)", re.IGNORECASE),
)


@dataclass(frozen=True)
class ParsedSection:
    type: SectionType
    header: str
    content: str


@dataclass(frozen=True)
class MatchDetail:
    keyword: str
    match_type: MatchType
    matched_as: str | None = None


@dataclass
class MatchResult:
    matched: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    match_details: list[MatchDetail] = field(default_factory=list)


@dataclass
class ExtractedKeywords:
    keywords: list[str] = field(default_factory=list)
    from_title: list[str] = field(default_factory=list)
    from_required: list[str] = field(default_factory=list)
    from_nice_to_have: list[str] = field(default_factory=list)
    technologies: list[str] = field(default_factory=list)
    action_verbs: list[str] = field(default_factory=list)
    keyword_priorities: dict[str, KeywordPriority] = field(default_factory=dict)
    keyword_frequency: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class KeywordDensity:
    overall_density: float
    stuffed_keywords: list[str]
    total_occurrences: int


def stem_word(word: str) -> str:
    """Strip the longest known suffix, keeping at least three characters."""
    stem = word.lower()
    for suffix in _STEM_SUFFIXES:
        if len(stem) > len(suffix) + 2 and stem.endswith(suffix):
            stripped = stem[: -len(suffix)]
            if len(stripped) >= 3:
                return stripped
    return stem


def extract_phrases(text: str) -> tuple[list[str], str]:
    """Pull known phrases out of ``text`` (longest first); return them and the blanked remainder."""
    remaining = text.lower()
    phrases: list[str] = []
    for phrase in _SORTED_PHRASES:
        index = remaining.find(phrase)
        while index != -1:
            phrases.append(phrase)
            end = index + len(phrase)
            remaining = remaining[:index] + " " * len(phrase) + remaining[end:]
            index = remaining.find(phrase, end)
    return phrases, remaining


def tokenize(text: str) -> list[str]:
    normalized = text.lower()
    for pattern, replacement in _SPECIAL_TERMS:
        normalized = pattern.sub(replacement, normalized)
    tokens = []
    for word in _TOKEN_SPLIT_RE.split(normalized):
        if len(word) <= 1:
            continue
        word = word.strip("-")
        if word:
            tokens.append(word)
    return tokens


def tokenize_with_phrases(text: str) -> list[str]:
    phrases, remainder = extract_phrases(text)
    return phrases + tokenize(remainder)


def word_count(text: str) -> int:
    return len(tokenize(text))


def _is_header(line: str) -> bool:
    trimmed = line.strip()
    if not trimmed:
        return False
    if _MARKDOWN_HEADER_RE.match(trimmed) or _BOLD_HEADER_RE.match(trimmed):
        return True
    if _CAPS_HEADER_RE.match(trimmed) and len(trimmed) < 80:
        return True
    if _COLON_HEADER_RE.match(trimmed):
        return True
    return trimmed.endswith(":") and len(trimmed) < 80 and not trimmed.startswith("-")


def _clean_header(line: str) -> str:
    header = _MARKDOWN_HEADER_RE.sub("", line.strip())
    header = re.sub(r"^\*\*|\*\*$", "", header)
    header = re.sub(r":\s*$", "", header)
    return header.strip()


def _detect_section_type(text: str) -> SectionType | None:
    lowered = text.lower()
    # nice-to-have first so "preferred qualifications" is not read as required
    if any(marker in lowered for marker in NICE_TO_HAVE_MARKERS):
        return "niceToHave"
    if any(marker in lowered for marker in _REQUIRED_SECTION_MARKERS):
        return "required"
    if any(marker in lowered for marker in _RESPONSIBILITIES_MARKERS):
        return "responsibilities"
    return None


def classify_section(header: str) -> SectionType:
    detected = _detect_section_type(header)
    if detected is not None:
        return detected
    lowered = header.lower()
    if any(marker in lowered for marker in _ABOUT_SECTION_MARKERS):
        return "about"
    return "unknown"


def _fallback_section_parsing(jd: str) -> list[ParsedSection]:
    sections: list[ParsedSection] = []
    current_content: list[str] = []
    current_type: SectionType = "unknown"

    for line in jd.split("\n"):
        detected = _detect_section_type(line.strip())
        if detected and detected != current_type:
            if current_content:
                sections.append(ParsedSection(current_type, "", "\n".join(current_content).strip()))
            current_type = detected
            current_content = [line]
        else:
            current_content.append(line)

    if current_content:
        sections.append(ParsedSection(current_type, "", "\n".join(current_content).strip()))
    if not sections:
        sections.append(ParsedSection("unknown", "", jd.strip()))
    return sections


def parse_jd_sections(jd: str) -> list[ParsedSection]:
    """Split a JD on header lines and classify each section by its header."""
    lines = jd.split("\n")
    headers = [(index, _clean_header(line)) for index, line in enumerate(lines) if _is_header(line)]
    if not headers:
        return _fallback_section_parsing(jd)

    sections = []
    for position, (line_index, header) in enumerate(headers):
        end = headers[position + 1][0] if position + 1 < len(headers) else len(lines)
        content = "\n".join(lines[line_index + 1 : end]).strip()
        sections.append(ParsedSection(classify_section(header), header, content))
    return sections


def extract_job_title(jd: str) -> str | None:
    for pattern in _TITLE_LABEL_PATTERNS:
        match = pattern.search(jd)
        if match and match.group(1).strip():
            return match.group(1).strip()

    lines = [line.strip() for line in jd.split("\n") if line.strip()]
    scan_limit = min(len(lines), 5)
    best: tuple[float, str] | None = None
    for index in range(scan_limit):
        line = lines[index]
        cleaned = _MARKDOWN_HEADER_RE.sub("", line)
        cleaned = re.sub(r"^\*\*|\*\*$", "", cleaned)
        cleaned = re.sub(r"<[^>]+>", "", cleaned).strip()
        if not _ROLE_RE.search(cleaned):
            continue

        score = 3.0
        if len(cleaned) < 80:
            score += 2
        if len(cleaned) < 50:
            score += 1
        if not cleaned.endswith(".") and len(cleaned.split()) <= 10:
            score += 1
        score += (scan_limit - index) * 0.5
        if _MARKDOWN_HEADER_RE.match(line) or line.startswith("**"):
            score += 1

        if best is None or score > best[0]:
            best = (score, cleaned)
    return best[1] if best else None


def calculate_dynamic_keyword_count(jd: str) -> int:
    words = len(tokenize(jd))
    sections = len(parse_jd_sections(jd))
    count = 15 + words // 50 + min(sections, 5)
    return max(10, min(40, count))


def extract_keywords(jd: str, count: int = 20) -> ExtractedKeywords:
    result = ExtractedKeywords()
    seen: set[str] = set()

    def add_keyword(word: str, category: list[str], priority: KeywordPriority) -> None:
        lowered = word.lower()
        is_phrase = " " in lowered
        if lowered in STOPWORDS or (not is_phrase and len(lowered) <= 2):
            return
        if lowered not in seen:
            seen.add(lowered)
            result.keywords.append(lowered)
            result.keyword_priorities.setdefault(lowered, priority)
        if lowered not in category:
            category.append(lowered)

    all_tokens = tokenize_with_phrases(jd)
    full_frequency = Counter(
        token for token in all_tokens if token not in STOPWORDS and len(token) > 1
    )

    title = extract_job_title(jd)
    if title:
        for word in tokenize_with_phrases(title):
            add_keyword(word, result.from_title, "title")

    def process_section(content: str, category: list[str], priority: KeywordPriority) -> None:
        for word in tokenize_with_phrases(content):
            if word in TECH_KEYWORDS:
                add_keyword(word, result.technologies, priority)
                add_keyword(word, category, priority)
            elif word not in STOPWORDS:
                add_keyword(word, category, priority)

    sections = parse_jd_sections(jd)
    for section_type, category, priority in (
        ("required", result.from_required, "required"),
        ("responsibilities", result.from_required, "responsibilities"),
        ("niceToHave", result.from_nice_to_have, "niceToHave"),
    ):
        for section in sections:
            if section.type == section_type:
                process_section(section.content, category, priority)

    for word in all_tokens:
        if word in TECH_KEYWORDS:
            add_keyword(word, result.technologies, "general")
    for word in all_tokens:
        if word in ACTION_VERBS:
            add_keyword(word, result.action_verbs, "general")

    remaining = Counter(
        word
        for word in all_tokens
        if word not in STOPWORDS and word not in seen and (" " in word or len(word) > 2)
    )
    # Counter.most_common keeps first-seen order for ties
    for word, _ in remaining.most_common():
        if len(result.keywords) >= count:
            break
        add_keyword(word, [], "general")

    for keyword in result.keywords:
        result.keyword_frequency[keyword] = full_frequency.get(keyword) or 1
    result.keywords = result.keywords[:count]
    return result


def _boundary_search(needle: str, haystack: str) -> bool:
    return re.search(rf"\b{re.escape(needle)}\b", haystack) is not None


def _synonyms_for(keyword: str) -> list[str]:
    synonyms = list(SKILL_SYNONYMS.get(keyword, ()))
    for canonical in SYNONYM_REVERSE_INDEX.get(keyword, ()):
        synonyms.append(canonical)
        synonyms.extend(s for s in SKILL_SYNONYMS.get(canonical, ()) if s != keyword)
    return synonyms


def match_keywords(keywords: list[str], resume_text: str) -> MatchResult:
    """Match JD keywords against a resume: exact, then stem, then synonym."""
    resume_lower = resume_text.lower()
    resume_tokens = set(tokenize(resume_text))
    resume_stems = {stem_word(token) for token in resume_tokens}
    result = MatchResult()

    for keyword in keywords:
        lowered = keyword.lower()
        is_phrase = " " in lowered
        is_short = len(lowered) <= 3 and not is_phrase

        if is_phrase:
            exact = lowered in resume_lower
        elif is_short:
            exact = _boundary_search(lowered, resume_lower)
        else:
            exact = lowered in resume_tokens or lowered in resume_lower
        if exact:
            result.matched.append(keyword)
            result.match_details.append(MatchDetail(keyword, "exact"))
            continue

        if not is_phrase:
            keyword_stem = stem_word(lowered)
            if keyword_stem in resume_stems:
                result.matched.append(keyword)
                result.match_details.append(MatchDetail(keyword, "stem", keyword_stem))
                continue

        for synonym in _synonyms_for(lowered):
            synonym_lower = synonym.lower()
            if len(synonym_lower) <= 3 and " " not in synonym_lower:
                found = _boundary_search(synonym_lower, resume_lower)
            else:
                found = synonym_lower in resume_lower
            if found:
                result.matched.append(keyword)
                result.match_details.append(MatchDetail(keyword, "synonym", synonym))
                break
        else:
            result.missing.append(keyword)

    return result


def calculate_match_rate(matched: int, total: int) -> int:
    if total == 0:
        return 0
    return int(matched / total * 100 + 0.5)


def calculate_keyword_density(matched_count: int, total_words: int) -> float:
    if total_words == 0:
        return 0.0
    return int(matched_count / total_words * 1000 + 0.5) / 10


def calculate_actual_keyword_density(
    resume_text: str,
    matched_keywords: list[str],
    stuffing_threshold: int = 5,
) -> KeywordDensity:
    """Count every occurrence of the matched keywords and flag the stuffed ones."""
    total_words = word_count(resume_text) if resume_text else 0
    if not matched_keywords or total_words == 0:
        return KeywordDensity(overall_density=0.0, stuffed_keywords=[], total_occurrences=0)

    resume_lower = resume_text.lower()
    total_occurrences = 0
    stuffed: list[str] = []
    for keyword in matched_keywords:
        phrase = _WHITESPACE_JOIN.join(re.escape(part) for part in keyword.lower().split())
        pattern = re.compile(rf"\b{phrase}\b")
        occurrences = len(pattern.findall(resume_lower))
        total_occurrences += occurrences
        if occurrences >= stuffing_threshold:
            stuffed.append(keyword)

    return KeywordDensity(
        overall_density=calculate_keyword_density(total_occurrences, total_words),
        stuffed_keywords=stuffed,
        total_occurrences=total_occurrences,
    )
