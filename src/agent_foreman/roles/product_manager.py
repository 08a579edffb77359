"""Product manager perspective: user stories, criteria, value and priority."""

import re
from typing import List, Literal

from pydantic import Field

from ..core.feature import CamelModel, utc_now_iso

STOP_WORDS = {
    "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "are", "was", "were", "be",
    "been", "being", "have", "has", "had", "do", "does", "did", "will",
    "would", "could", "should", "may", "might", "must", "shall",
}

ENTITY_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"users?", r"authentication", r"login", r"registration", r"password",
        r"accounts?", r"sessions?", r"tokens?", r"emails?", r"profiles?",
        r"admins?", r"system", r"data", r"services?", r"api", r"database",
    )
] + [re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\b")]

ACTION_VERBS = {
    "implement", "create", "add", "build", "develop", "enable", "allow",
    "login", "register", "authenticate", "reset", "verify", "validate",
    "update", "delete", "remove", "modify", "send", "receive", "process",
    "display", "show", "hide", "submit", "save", "load", "fetch",
}

SECURITY_HINTS = ["auth", "login", "password", "security"]
USER_TYPES = ["user", "admin", "system"]


class AnalysisMetadata(CamelModel):
    analyzed_at: str = Field(default_factory=utc_now_iso)
    version: str = "1.0.0"
    analyzer: str


class ParsedRequirement(CamelModel):
    raw: str
    keywords: List[str] = Field(default_factory=list)
    entities: List[str] = Field(default_factory=list)
    actions: List[str] = Field(default_factory=list)


class UserStory(CamelModel):
    id: str
    as_a: str
    i_want: str
    so_that: str
    type: Literal["functional", "non-functional", "technical"] = "functional"


class CriteriaMapping(CamelModel):
    story_id: str
    criteria: List[str]


class ROIEstimate(CamelModel):
    estimate: str
    timeframe: str
    confidence: Literal["low", "medium", "high"]


class EffortEstimate(CamelModel):
    estimate: Literal["low", "medium", "high", "very-high"]
    description: str


class BusinessValue(CamelModel):
    description: str
    roi: ROIEstimate
    value_drivers: List[str]
    risks: List[str]
    effort: EffortEstimate


class PriorityAssessment(CamelModel):
    level: Literal["critical", "high", "medium", "low"]
    justification: str
    value_score: int
    complexity_score: int
    suggested_order: int


class Stakeholder(CamelModel):
    name: str
    role: str
    interest: Literal["primary", "secondary", "tertiary"]
    communication_needs: str


class Dependency(CamelModel):
    name: str
    type: Literal["technical", "business", "external", "internal"]
    description: str
    risk: Literal["low", "medium", "high"]


class PMAnalysisResult(CamelModel):
    parsed_requirement: ParsedRequirement
    user_stories: List[UserStory]
    acceptance_criteria: List[str]
    criteria_mapping: List[CriteriaMapping]
    business_value: BusinessValue
    priority: PriorityAssessment
    stakeholders: List[Stakeholder]
    dependencies: List[Dependency]
    metadata: AnalysisMetadata


def _unique(items: List[str]) -> List[str]:
    return list(dict.fromkeys(items))


def _mentions(keywords: List[str], hints: List[str]) -> bool:
    return any(h in k for k in keywords for h in hints)


class ProductManagerRole:
    """Rule-based product analysis of a free-text requirement."""

    def __init__(self):
        self._story_counter = 0

    async def analyze(self, requirement: str) -> PMAnalysisResult:
        if not requirement or not requirement.strip():
            raise ValueError("Requirement cannot be empty")

        parsed = self.parse_requirement(requirement)
        stories = self._user_stories(parsed)
        criteria = self._acceptance_criteria(parsed, stories)
        value = self._business_value(parsed)
        return PMAnalysisResult(
            parsed_requirement=parsed,
            user_stories=stories,
            acceptance_criteria=criteria,
            criteria_mapping=self._map_criteria(stories, criteria),
            business_value=value,
            priority=self._priority(value, parsed),
            stakeholders=self._stakeholders(parsed),
            dependencies=self._dependencies(parsed),
            metadata=AnalysisMetadata(analyzer="ProductManagerRole"),
        )

    def parse_requirement(self, requirement: str) -> ParsedRequirement:
        words = requirement.lower().split()
        entities = []
        for pattern in ENTITY_PATTERNS:
            entities.extend(m.lower() for m in pattern.findall(requirement))
        return ParsedRequirement(
            raw=requirement,
            keywords=_unique([w for w in words if len(w) > 2 and w not in STOP_WORDS]),
            entities=_unique(entities),
            actions=_unique([w for w in words if w in ACTION_VERBS]),
        )

    def _next_story_id(self) -> str:
        self._story_counter += 1
        return f"US-{self._story_counter}"

    def _user_stories(self, parsed: ParsedRequirement) -> List[UserStory]:
        persona = next((e for e in parsed.entities if any(u in e for u in USER_TYPES)), "user")
        stories = [
            UserStory(
                id=self._next_story_id(),
                as_a=persona,
                i_want=f"to {parsed.actions[0] if parsed.actions else 'use'} "
                       f"{parsed.entities[0] if parsed.entities else 'the feature'}",
                so_that="I can accomplish my goals efficiently",
            )
        ]

        actions = parsed.actions or ["access"]
        entities = [e for e in parsed.entities if not any(u in e for u in USER_TYPES)]
        for i, entity in enumerate(entities[:3]):
            action = actions[i % len(actions)]
            stories.append(UserStory(
                id=self._next_story_id(),
                as_a=persona,
                i_want=f"to {action} {entity}",
                so_that=f"I can manage my {entity} effectively",
                type=self._story_type(action, entity),
            ))

        if _mentions(parsed.keywords, SECURITY_HINTS):
            stories.append(UserStory(
                id=self._next_story_id(),
                as_a=persona,
                i_want="to have my credentials securely stored",
                so_that="my account remains protected",
                type="non-functional",
            ))
        return stories

    @staticmethod
    def _story_type(action: str, entity: str) -> str:
        if any(k in action or k in entity for k in ("secure", "fast", "reliable", "scalable", "performance")):
            return "non-functional"
        if any(k in action or k in entity for k in ("api", "database", "integration", "migration", "infrastructure")):
            return "technical"
        return "functional"

    def _acceptance_criteria(self, parsed: ParsedRequirement, stories: List[UserStory]) -> List[str]:
        criteria = [f"User should be able to {re.sub(r'^to ', '', s.i_want)}" for s in stories]
        criteria += [
            "System must validate all user inputs",
            "Error messages should be clear and actionable",
        ]
        if _mentions(parsed.keywords, SECURITY_HINTS):
            criteria += [
                "Passwords must be securely hashed before storage",
                "Session should expire after inactivity period",
            ]
        criteria.append("Response time should be under 2 seconds for normal operations")
        return criteria

    def _map_criteria(self, stories: List[UserStory], criteria: List[str]) -> List[CriteriaMapping]:
        mappings = []
        for story in stories:
            last_word = story.i_want.split(" ")[-1].lower()
            related = [
                c for c in criteria
                if last_word in c.lower() or (story.type == "non-functional" and "must" in c.lower())
            ]
            mappings.append(CriteriaMapping(story_id=story.id, criteria=related or criteria[:1]))
        return mappings

    def _complexity(self, parsed: ParsedRequirement) -> str:
        score = len(parsed.entities) + len(parsed.actions)
        if score <= 3:
            return "low"
        if score <= 6:
            return "medium"
        if score <= 10:
            return "high"
        return "very-high"

    def _business_value(self, parsed: ParsedRequirement) -> BusinessValue:
        security = _mentions(parsed.keywords, SECURITY_HINTS)
        drivers = ["Improved user experience", "Increased user engagement"]
        risks = []
        if security:
            drivers += ["Enhanced security posture", "Regulatory compliance"]
            risks += [
                "Security vulnerabilities if not implemented correctly",
                "User friction if security is too strict",
            ]
        risks.append("Integration complexity with existing systems")

        return BusinessValue(
            description=(
                f"Implementing {parsed.raw} will provide significant value by improving "
                "the overall system capabilities and user satisfaction."
            ),
            roi=ROIEstimate(
                estimate="High - reduces security incident costs" if security else "Medium - improves user retention",
                timeframe="3-6 months",
                confidence="medium",
            ),
            value_drivers=drivers,
            risks=risks,
            effort=EffortEstimate(
                estimate=self._complexity(parsed),
                description=f"Based on {len(parsed.entities)} entities and {len(parsed.actions)} actions identified",
            ),
        )

    def _priority(self, value: BusinessValue, parsed: ParsedRequirement) -> PriorityAssessment:
        security = _mentions(parsed.keywords, SECURITY_HINTS + ["critical"])
        value_score = 5
        if "high" in value.roi.estimate.lower():
            value_score += 3
        if security:
            value_score += 2
        value_score = min(10, value_score)
        complexity_score = {"low": 3, "medium": 5, "high": 7, "very-high": 9}.get(value.effort.estimate, 5)

        if security or value_score >= 8:
            level = "critical" if value_score >= 9 else "high"
        elif value_score >= 6:
            level = "medium"
        else:
            level = "low"

        justification = f"Based on business value ({value_score}/10) and complexity ({complexity_score}/10)."
        if security:
            justification += " Security-related features receive priority boost."
        return PriorityAssessment(
            level=level,
            justification=justification,
            value_score=value_score,
            complexity_score=complexity_score,
            suggested_order={"critical": 1, "high": 2, "medium": 3, "low": 4}[level],
        )

    def _stakeholders(self, parsed: ParsedRequirement) -> List[Stakeholder]:
        has_user = any("user" in e for e in parsed.entities)
        stakeholders = [
            Stakeholder(
                name="End Users",
                role="Direct users of the feature" if has_user else "Feature beneficiaries",
                interest="primary",
                communication_needs="Feature updates, training materials, release notes",
            ),
            Stakeholder(
                name="Product Team",
                role="Feature definition and prioritization",
                interest="primary",
                communication_needs="Requirements clarification, progress updates, demo sessions",
            ),
            Stakeholder(
                name="Development Team",
                role="Implementation and technical decisions",
                interest="primary",
                communication_needs="Technical specifications, design reviews, blockers",
            ),
        ]
        if _mentions(parsed.keywords, SECURITY_HINTS):
            stakeholders.append(Stakeholder(
                name="Security Team",
                role="Security review and compliance",
                interest="secondary",
                communication_needs="Security requirements, threat assessment, compliance checklist",
            ))
        stakeholders.append(Stakeholder(
            name="QA Team",
            role="Quality assurance and testing",
            interest="secondary",
            communication_needs="Test cases, acceptance criteria, bug reports",
        ))
        return stakeholders

    def _dependencies(self, parsed: ParsedRequirement) -> List[Dependency]:
        deps = []
        if _mentions(parsed.keywords, ["auth", "login", "password"]):
            deps += [
                Dependency(name="Authentication Service", type="technical",
                           description="Core authentication infrastructure", risk="medium"),
                Dependency(name="User Database", type="technical",
                           description="User credential storage", risk="high"),
            ]
        if _mentions(parsed.keywords, ["email", "notification"]):
            deps.append(Dependency(name="Email Service", type="external",
                                   description="Email delivery provider", risk="medium"))
        deps.append(Dependency(name="API Gateway", type="internal",
                               description="Request routing and rate limiting", risk="low"))
        return deps
