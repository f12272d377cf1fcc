"""Candidate validation engine.

Generated candidates are untrusted. ``parse_candidate`` turns raw generator
JSON into a tagged result, and ``CandidateValidator`` applies the hard rules:

1. all required fields present
2. difficulty matches the requested slot
3. no duplicate word across chain and dummy words
4. every word is a single token
5. no dummy word repeats a chain word
6. no dummy word is the fused form of an adjacent chain pair
7. each link is the fused or spaced form of its pair, lowercase, unhyphenated
8. no link was used recently
9. reused chain words stay within the reuse budget
10. endpoints were not used recently (only when endpoint blocking is on)

Title Case is checked as well but only ever reported as a warning.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from ..config import settings
from ..models.puzzles import (
    PuzzleCandidate,
    PuzzlePoolEntry,
    WORD_KEYS,
    DUMMY_KEYS,
    LINK_KEYS,
    KNOWN_DIFFICULTIES,
)
from ..models.validation import (
    BannedSet,
    CandidateParseResult,
    IssueKind,
    IssueSeverity,
    ValidationIssue,
    ValidationReport,
)
from .normalize import (
    normalize_word,
    normalize_link,
    is_non_empty,
    is_single_token,
    is_title_case,
    fused_pair,
    spaced_pair,
)

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ["difficulty", *WORD_KEYS, *DUMMY_KEYS, *LINK_KEYS]

RULE_REQUIRED_FIELDS = "required_fields"
RULE_DIFFICULTY = "difficulty"
RULE_DUPLICATE_WORD = "duplicate_word"
RULE_SINGLE_TOKEN = "single_token"
RULE_DUMMY_OVERLAP = "dummy_overlap"
RULE_FUSED_PAIR = "fused_pair"
RULE_LINK_FORM = "link_form"
RULE_LINK_HYPHEN = "link_hyphen"
RULE_LINK_CASE = "link_case"
RULE_BANNED_LINK = "banned_link"
RULE_REUSED_WORDS = "reused_words"
RULE_BANNED_ENDPOINT = "banned_endpoint"
RULE_TITLE_CASE = "title_case"


def _issue(rule: str, kind: IssueKind, message: str, items: Iterable[str] = (),
           severity: IssueSeverity = IssueSeverity.ERROR) -> ValidationIssue:
    return ValidationIssue(rule=rule, kind=kind, message=message, items=list(items), severity=severity)


def _unique(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(values))


def parse_candidate(raw: Any) -> CandidateParseResult:
    """Read generator output into ``Ok(candidate)`` or ``Err(reasons)``."""
    if isinstance(raw, PuzzleCandidate):
        return CandidateParseResult(ok=True, candidate=raw)

    if not isinstance(raw, dict):
        return CandidateParseResult(ok=False, errors=[
            _issue(RULE_REQUIRED_FIELDS, IssueKind.STRUCTURAL, "Candidate is not a JSON object.")
        ])

    errors: List[ValidationIssue] = []

    missing = [key for key in REQUIRED_KEYS if key not in raw]
    if missing:
        errors.append(_issue(
            RULE_REQUIRED_FIELDS, IssueKind.STRUCTURAL, f"Missing {', '.join(missing)}.", missing
        ))

    malformed = [key for key in REQUIRED_KEYS if key in raw and not is_non_empty(raw[key])]
    if malformed:
        errors.append(_issue(
            RULE_REQUIRED_FIELDS, IssueKind.STRUCTURAL,
            f"Empty or non-text values for {', '.join(malformed)}.", malformed
        ))

    if errors:
        return CandidateParseResult(ok=False, errors=errors)

    try:
        candidate = PuzzleCandidate(
            chain=[raw[key] for key in WORD_KEYS],
            dummy=[raw[key] for key in DUMMY_KEYS],
            links=[raw[key] for key in LINK_KEYS],
            difficulty=raw["difficulty"],
        )
    except PydanticValidationError as e:
        return CandidateParseResult(ok=False, errors=[
            _issue(RULE_REQUIRED_FIELDS, IssueKind.STRUCTURAL, f"Malformed candidate: {e}")
        ])

    extra = sorted(set(raw) - set(REQUIRED_KEYS))
    if extra:
        logger.debug(f"Ignoring unexpected candidate keys: {extra}")

    return CandidateParseResult(ok=True, candidate=candidate)


def escalate(hard_block: BannedSet, issues: Iterable[ValidationIssue], include_endpoints: bool) -> BannedSet:
    """Fold the links (and optionally endpoints) cited by collision issues into ``hard_block``."""
    issues = list(issues)
    links = [item for issue in issues if issue.rule == RULE_BANNED_LINK for item in issue.items]
    endpoints: List[str] = []
    if include_endpoints:
        endpoints = [
            normalize_word(item) for issue in issues
            if issue.rule == RULE_BANNED_ENDPOINT for item in issue.items
        ]
    return hard_block.add_links(links).add_endpoints(endpoints)


def _word_issues(chain: List[str], dummy: List[str]) -> List[ValidationIssue]:
    """Rules 3-6 plus the Title Case warning, shared by candidates and pool rows."""
    issues: List[ValidationIssue] = []
    norm_chain = [normalize_word(word) for word in chain]
    norm_dummy = [normalize_word(word) for word in dummy]

    seen = set()
    duplicates = []
    for word in norm_chain + norm_dummy:
        if word in seen:
            duplicates.append(word)
        seen.add(word)
    if duplicates:
        duplicates = _unique(duplicates)
        issues.append(_issue(
            RULE_DUPLICATE_WORD, IssueKind.STRUCTURAL, f"Duplicate words ({', '.join(duplicates)}).", duplicates
        ))

    for label, words in (("Chain", chain), ("Dummy", dummy)):
        for word in words:
            if not is_single_token(word):
                issues.append(_issue(
                    RULE_SINGLE_TOKEN, IssueKind.STRUCTURAL, f'{label} word "{word}" is not a single word.', [word]
                ))
            elif not is_title_case(word):
                issues.append(_issue(
                    RULE_TITLE_CASE, IssueKind.STRUCTURAL, f'{label} word "{word}" is not Title Case.', [word],
                    severity=IssueSeverity.WARNING
                ))

    chain_set = set(norm_chain)
    overlap = _unique(word for word in norm_dummy if word in chain_set)
    if overlap:
        issues.append(_issue(
            RULE_DUMMY_OVERLAP, IssueKind.STRUCTURAL, f"Dummy words overlap chain ({', '.join(overlap)}).", overlap
        ))

    fused = {fused_pair(chain[idx], chain[idx + 1]) for idx in range(len(chain) - 1)}
    leaked = _unique(word for word in norm_dummy if word in fused)
    if leaked:
        issues.append(_issue(
            RULE_FUSED_PAIR, IssueKind.LEAKAGE, f"Dummy words match fused pairs ({', '.join(leaked)}).", leaked
        ))

    return issues


def _link_issues(chain: List[str], links: List[str], severity: IssueSeverity,
                 skip_empty: bool = False) -> List[ValidationIssue]:
    """Rule 7 for every link that has both neighbouring chain words."""
    issues: List[ValidationIssue] = []
    for idx, link in enumerate(links):
        if idx + 1 >= len(chain):
            break
        if skip_empty and not is_non_empty(link):
            continue
        label = LINK_KEYS[idx]
        left, right = chain[idx], chain[idx + 1]
        normalized = normalize_link(link)

        if "-" in link:
            issues.append(_issue(
                RULE_LINK_HYPHEN, IssueKind.STRUCTURAL, f"{label} has hyphen.", [link], severity=severity
            ))
        if link != link.lower():
            issues.append(_issue(
                RULE_LINK_CASE, IssueKind.STRUCTURAL, f"{label} not lowercase.", [link], severity=severity
            ))
        if normalized not in (fused_pair(left, right), spaced_pair(left, right)):
            issues.append(_issue(
                RULE_LINK_FORM, IssueKind.STRUCTURAL,
                f'{label} "{link}" does not match "{spaced_pair(left, right)}".', [link], severity=severity
            ))
    return issues


class CandidateValidator:
    """Applies the hard and soft puzzle rules to generated candidates."""

    def __init__(self, max_reused_words: Optional[int] = None, hard_block_endpoints: Optional[bool] = None):
        """Initialize the validator with reuse and endpoint policies."""
        self.max_reused_words = settings.max_reused_words if max_reused_words is None else max_reused_words
        self.hard_block_endpoints = (
            settings.hard_block_endpoints if hard_block_endpoints is None else hard_block_endpoints
        )

    def collect_issues(
        self,
        candidate: PuzzleCandidate,
        expected_difficulty: str,
        banned: Optional[BannedSet] = None,
        reuse_budget: Optional[int] = None,
    ) -> List[ValidationIssue]:
        """Return every error and warning for a parsed candidate."""
        banned = banned or BannedSet()
        budget = self.max_reused_words if reuse_budget is None else reuse_budget

        empty = [
            key for key, value in candidate.to_flat().items() if not is_non_empty(value)
        ]
        if empty:
            # Remaining rules are meaningless on a partially empty candidate.
            return [_issue(RULE_REQUIRED_FIELDS, IssueKind.STRUCTURAL, f"Missing {', '.join(empty)}.", empty)]

        issues: List[ValidationIssue] = []

        if candidate.difficulty != expected_difficulty:
            issues.append(_issue(
                RULE_DIFFICULTY, IssueKind.STRUCTURAL,
                f"Difficulty is {candidate.difficulty}, expected {expected_difficulty}.", [candidate.difficulty]
            ))

        issues.extend(_word_issues(candidate.chain, candidate.dummy))
        issues.extend(_link_issues(candidate.chain, candidate.links, IssueSeverity.ERROR))

        norm_links = [normalize_link(link) for link in candidate.links]
        link_conflicts = _unique(link for link in norm_links if link in banned.links)
        if link_conflicts:
            issues.append(_issue(
                RULE_BANNED_LINK, IssueKind.COLLISION,
                f"qa_links already used ({', '.join(link_conflicts)}).", link_conflicts
            ))

        reused = [word for word in (normalize_word(w) for w in candidate.chain) if word in banned.words]
        if len(reused) > budget:
            issues.append(_issue(
                RULE_REUSED_WORDS, IssueKind.COLLISION, f"Too many reused words ({', '.join(reused)}).", reused
            ))

        if self.hard_block_endpoints:
            endpoints = [normalize_word(word) for word in candidate.endpoints]
            endpoint_conflicts = _unique(word for word in endpoints if word in banned.endpoints)
            if endpoint_conflicts:
                issues.append(_issue(
                    RULE_BANNED_ENDPOINT, IssueKind.COLLISION,
                    f"Endpoints already used ({', '.join(endpoint_conflicts)}).", endpoint_conflicts
                ))

        return issues

    def validate(
        self,
        candidate: PuzzleCandidate,
        expected_difficulty: str,
        banned: Optional[BannedSet] = None,
        reuse_budget: Optional[int] = None,
    ) -> List[ValidationIssue]:
        """Return the blocking issues for a candidate. An empty list means accepted."""
        issues = self.collect_issues(candidate, expected_difficulty, banned, reuse_budget)
        return [issue for issue in issues if issue.is_error]

    def review(
        self,
        raw: Union[Dict[str, Any], PuzzleCandidate],
        expected_difficulty: str,
        banned: Optional[BannedSet] = None,
    ) -> ValidationReport:
        """Parse and validate raw generator output in one step."""
        parsed = parse_candidate(raw)
        if not parsed.ok:
            return ValidationReport(errors=parsed.errors)

        issues = self.collect_issues(parsed.candidate, expected_difficulty, banned)
        return ValidationReport(
            errors=[issue for issue in issues if issue.is_error],
            warnings=[issue for issue in issues if not issue.is_error],
        )

    def audit_entry(self, entry: PuzzlePoolEntry) -> ValidationReport:
        """Re-check a stored pool row.

        Stored rows are already live, so link and difficulty problems are
        reported as warnings; only broken chains and leaking dummies block.
        """
        report = ValidationReport()

        missing = [WORD_KEYS[idx] for idx, word in enumerate(entry.chain) if not is_non_empty(word)]
        if missing:
            report.errors.append(_issue(
                RULE_REQUIRED_FIELDS, IssueKind.STRUCTURAL, "Missing chain words.", missing
            ))

        chain = [word for word in entry.chain if is_non_empty(word)]
        dummy = [word for word in entry.dummy if is_non_empty(word)]
        for issue in _word_issues(chain, dummy):
            (report.errors if issue.is_error else report.warnings).append(issue)

        if entry.difficulty not in KNOWN_DIFFICULTIES:
            report.warnings.append(_issue(
                RULE_DIFFICULTY, IssueKind.STRUCTURAL,
                f'Unexpected difficulty "{entry.difficulty}".', [entry.difficulty],
                severity=IssueSeverity.WARNING
            ))

        if entry.links and not missing:
            report.warnings.extend(
                _link_issues(entry.chain, entry.links, IssueSeverity.WARNING, skip_empty=True)
            )

        return report
