"""Suggestion Service - AI-assisted match suggestions.

This module handles:
- Narrowing all profiles to role-compatible, not-yet-connected candidates
- A cheap local pre-ranking that caps the candidate set sent to the LLM
- Asking the LLM for scores, reasons and match types
- Validating, filtering and enriching what comes back

Pipeline for ``suggest(profile)``; each step only narrows the set:

1. role compatibility (builder <-> investor/technical), self excluded,
   optional role filter
2. drop anyone already connected to the requester, any status, either direction
3. pre-rank by ``10 * shared tags + 5 * same location`` and keep the top 20
4. LLM scoring of that bounded set
5. drop scores below 50, sort descending, truncate to the limit (1..20)
6. attach the full profile to each survivor

The pre-rank is only a proxy: it bounds the size and cost of the LLM call and
keeps the most promising candidates, it does not guarantee every eligible
candidate is considered.

Failure is soft: an LLM error or unparsable reply yields an empty list.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from vibematch.errors import ValidationError
from vibematch.models import (
    MATCH_TYPES,
    MatchSuggestion,
    Profile,
    Project,
    ROLES,
    ROLE_BUILDER,
    ROLE_INVESTOR,
    ROLE_TECHNICAL,
)
from vibematch.models.profile import normalize_role
from vibematch.services.llm_service import LLMServiceError
from vibematch.services.storage import Storage

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 20
MAX_CANDIDATES = 20
MIN_MATCH_SCORE = 50

TAG_WEIGHT = 10
LOCATION_WEIGHT = 5

COMPATIBLE_ROLES: dict[str, tuple[str, ...]] = {
    ROLE_BUILDER: (ROLE_INVESTOR, ROLE_TECHNICAL),
    ROLE_INVESTOR: (ROLE_BUILDER,),
    ROLE_TECHNICAL: (ROLE_BUILDER,),
}

SYSTEM_PROMPT = """You are an expert matchmaking AI for a professional networking platform called VibeMatch.
Your job is to analyze user profiles and intelligently match:
- Builders (entrepreneurs shipping projects) with Investors and Tech Leads
- Investors with Builders who have promising projects
- Tech Leads with Builders who need technical leadership

Consider: skills alignment, project fit, location proximity, complementary expertise, and strategic value.
Return match scores (0-100) with specific, actionable reasons."""

EXPLAIN_SYSTEM_PROMPT = "You are a matchmaking expert. Provide concise, specific match explanations."

FALLBACK_EXPLANATION = {
    "reason": "Potential collaboration opportunity based on complementary skills.",
    "matchType": "collaboration",
}

# Leading integer of a query value ("5abc" -> 5, "3.7" -> 3)
LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def clamp_limit(limit: Any) -> int:
    """Parse a requested result count and clamp it to [1, MAX_LIMIT]."""
    if limit is None or isinstance(limit, bool):
        return DEFAULT_LIMIT
    if isinstance(limit, (int, float)):
        value = int(limit)
    else:
        match = LEADING_INT.match(str(limit))
        if match is None:
            return DEFAULT_LIMIT
        value = int(match.group(1))
    return min(max(1, value), MAX_LIMIT)


def compatible_candidates(requester: Profile, profiles: list[Profile], role: str | None = None) -> list[Profile]:
    """Step 1: role compatibility, self excluded, optional role narrowing."""
    allowed = COMPATIBLE_ROLES.get(requester.role, ())
    return [
        p for p in profiles
        if p.id != requester.id
        and p.role in allowed
        and (role is None or p.role == role)
    ]


def exclude_connected(requester_id: str, candidates: list[Profile], connected_ids: set[str]) -> list[Profile]:
    """Step 2: drop anyone with an existing match to the requester."""
    return [p for p in candidates if p.id not in connected_ids and p.id != requester_id]


def prerank_score(requester: Profile, candidate: Profile) -> int:
    """Cheap local proxy score: shared tags and identical location."""
    requester_tags = set(requester.tags or [])
    shared = sum(1 for tag in set(candidate.tags or []) if tag in requester_tags)
    score = shared * TAG_WEIGHT
    if requester.location and candidate.location == requester.location:
        score += LOCATION_WEIGHT
    return score


def prerank(requester: Profile, candidates: list[Profile], cap: int = MAX_CANDIDATES) -> list[Profile]:
    """Step 3: sort by proxy score (stable) and keep at most ``cap``."""
    ranked = sorted(candidates, key=lambda c: prerank_score(requester, c), reverse=True)
    return ranked[:cap]


def parse_suggestions(content: str, candidate_ids: set[str]) -> list[MatchSuggestion]:
    """Validate the LLM reply. Malformed entries and scores below
    MIN_MATCH_SCORE are dropped one by one.

    Raises:
        ValueError: the reply is not a JSON object with a ``matches`` list
    """
    cleaned = (content or "").strip()
    # Clean markdown fences
    if cleaned.startswith("```"):
        cleaned = cleaned.strip("`")
        if cleaned.lower().startswith("json"):
            cleaned = cleaned[4:]
        cleaned = cleaned.strip()

    data = json.loads(cleaned)
    if not isinstance(data, dict) or not isinstance(data.get("matches"), list):
        raise ValueError("response has no 'matches' list")

    best: dict[str, MatchSuggestion] = {}
    raw_scores: dict[str, float] = {}
    for item in data["matches"]:
        if not isinstance(item, dict):
            continue
        profile_id = item.get("profileId")
        score = item.get("matchScore")
        match_type = item.get("matchType")
        reason = item.get("matchReason") or ""
        if not isinstance(profile_id, str) or profile_id not in candidate_ids:
            continue
        if isinstance(score, bool) or not isinstance(score, (int, float)) or not 0 <= score <= 100:
            continue
        # Threshold applies to the raw score, before rounding
        if score < MIN_MATCH_SCORE:
            continue
        if match_type not in MATCH_TYPES or not isinstance(reason, str):
            continue
        suggestion = MatchSuggestion(
            profile_id=profile_id,
            match_score=int(round(score)),
            match_reason=reason.strip(),
            match_type=match_type,
        )
        current = best.get(profile_id)
        if current is None or score > raw_scores[profile_id]:
            best[profile_id] = suggestion
            raw_scores[profile_id] = score
    return list(best.values())


class SuggestionService:
    """Service for ranked match suggestions."""

    def __init__(self, storage: Storage, llm_service=None):
        """Initialize with optional LLM dependency.

        Args:
            storage: Persistence layer for profiles, projects and matches
            llm_service: LLM service for scoring. If None, uses default.
        """
        self._storage = storage
        self._llm = llm_service

    @property
    def llm(self):
        """Lazy load LLM service."""
        if self._llm is None:
            from vibematch.services.llm_service import LLMService
            self._llm = LLMService.get_instance()
        return self._llm

    def suggest(self, profile: Profile, *, role: str | None = None, limit: Any = None) -> list[MatchSuggestion]:
        """Ranked suggestions for ``profile``.

        Args:
            profile: The requesting profile
            role: Only suggest profiles with this role
            limit: Maximum results; clamped to [1, 20], default 10

        Returns:
            list[MatchSuggestion]: scores >= 50, best first, profiles attached

        Raises:
            ValidationError: unknown role filter
        """
        max_results = clamp_limit(limit)
        if role:
            role = normalize_role(role)
            if role not in ROLES:
                raise ValidationError("role", f"must be one of {', '.join(ROLES)}")

        candidates = compatible_candidates(profile, self._storage.list_profiles(), role or None)
        connected = {m.other_party(profile.id) for m in self._storage.list_matches(profile.id)}
        candidates = exclude_connected(profile.id, candidates, connected)
        shortlist = prerank(profile, candidates)
        logger.info(
            "[suggest] profile=%s eligible=%d shortlist=%d limit=%d",
            profile.id, len(candidates), len(shortlist), max_results,
        )
        if not shortlist:
            return []

        prompt = self._build_prompt(profile, self._projects_for(profile), shortlist)
        try:
            response = self.llm.call(prompt, system=SYSTEM_PROMPT, json_mode=True)
            suggestions = parse_suggestions(response, {c.id for c in shortlist})
        except (LLMServiceError, ValueError) as e:
            logger.warning("[suggest] profile=%s scoring failed: %s", profile.id, e)
            return []

        kept = sorted(suggestions, key=lambda s: s.match_score, reverse=True)[:max_results]

        by_id = {c.id: c for c in shortlist}
        for suggestion in kept:
            suggestion.profile = self._storage.get_profile(suggestion.profile_id) or by_id[suggestion.profile_id]
        logger.info("[suggest] profile=%s returned=%d", profile.id, len(kept))
        return kept

    def explain_match(self, first: Profile, second: Profile) -> dict[str, str]:
        """One-off explanation of why two profiles fit; falls back to a generic reason."""
        prompt = f"""User 1:
{self._describe_brief(first)}

User 2:
{self._describe_brief(second)}

Explain in 1-2 sentences why these two users would be a good match. Also determine the match type: "collaboration", "investment", "technical", or "mentorship".

Return JSON:
{{
  "reason": "explanation here",
  "matchType": "technical"
}}"""
        try:
            data = json.loads(self.llm.call(prompt, system=EXPLAIN_SYSTEM_PROMPT, json_mode=True))
        except (LLMServiceError, ValueError) as e:
            logger.warning("[explain] %s/%s failed: %s", first.id, second.id, e)
            return dict(FALLBACK_EXPLANATION)
        if (
            not isinstance(data, dict)
            or not isinstance(data.get("reason"), str)
            or data.get("matchType") not in MATCH_TYPES
        ):
            return dict(FALLBACK_EXPLANATION)
        return {"reason": data["reason"], "matchType": data["matchType"]}

    def _projects_for(self, profile: Profile) -> list[Project]:
        if profile.role != ROLE_BUILDER:
            return []
        return self._storage.list_projects(profile.id)

    def _describe_brief(self, profile: Profile) -> str:
        projects = self._projects_for(profile)
        lines = [
            f"- Name: {profile.name}",
            f"- Role: {profile.role}",
            f"- Skills: {', '.join(profile.tags) if profile.tags else 'N/A'}",
            f"- Tagline: {profile.tagline or 'N/A'}",
        ]
        if projects:
            lines.append(f"- Has {len(projects)} project(s)")
        return "\n".join(lines)

    def _build_prompt(self, profile: Profile, projects: list[Project], candidates: list[Profile]) -> str:
        """Build prompt for candidate scoring."""
        user_description = f"""Current User Profile:
- Name: {profile.name}
- Role: {profile.role}
- Tagline: {profile.tagline or 'N/A'}
- Location: {profile.location or 'N/A'}
- Skills/Tags: {', '.join(profile.tags) if profile.tags else 'N/A'}"""
        if projects:
            user_description += "\n- Projects:\n" + "\n".join(
                _describe_project(p, with_funding=True) for p in projects
            )

        blocks = []
        for idx, candidate in enumerate(candidates, start=1):
            block = f"""Candidate {idx}:
- ID: {candidate.id}
- Name: {candidate.name}
- Role: {candidate.role}
- Tagline: {candidate.tagline or 'N/A'}
- Location: {candidate.location or 'N/A'}
- Skills/Tags: {', '.join(candidate.tags) if candidate.tags else 'N/A'}"""
            candidate_projects = self._projects_for(candidate)
            if candidate_projects:
                block += "\n- Projects:\n" + "\n".join(_describe_project(p) for p in candidate_projects)
            blocks.append(block)
        candidates_description = "\n---\n".join(blocks)

        return f'''{user_description}

---
Candidate Profiles to Match:
{candidates_description}

---
Instructions:
Analyze each candidate and determine their match quality with the current user.
For each candidate, provide:
1. matchScore (0-100): How well they match
2. matchReason: A specific, actionable 1-2 sentence explanation
3. matchType: "collaboration", "investment", "technical", or "mentorship"

Only include candidates with a match score of {MIN_MATCH_SCORE} or higher.

Return your response as JSON in this format:
{{
  "matches": [
    {{
      "profileId": "candidate-id",
      "matchScore": 85,
      "matchReason": "Strong technical alignment with React and Node.js skills. Their experience in scalable systems matches your MVP stage project needs.",
      "matchType": "technical"
    }}
  ]
}}'''


def _describe_project(project: Project, with_funding: bool = False) -> str:
    text = f"""  * {project.name}: {project.description or 'N/A'}
    - Stage: {project.current_stage or 'N/A'}
    - Looking for: {', '.join(project.looking_for) if project.looking_for else 'N/A'}
    - Tech Stack: {', '.join(project.tech_stack) if project.tech_stack else 'N/A'}"""
    if with_funding:
        funding = f"${project.funding_goal:,.2f}" if project.funding_goal is not None else "N/A"
        text += f"\n    - Funding Goal: {funding}"
    return text
