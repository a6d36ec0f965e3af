"""
question_templates.py — Suggested Question Templates
====================================================
Templates are formatted with {gap}, the title of the top-scoring gap.

Priority model (0–100):
  base priority per category
  + innovation_score // 10        → market_validation
  + LOW_FEASIBILITY_RISK_BOOST    → risk_assessment when feasibility is "low"
  + HIGH_FEASIBILITY_EXECUTION_BOOST → execution_strategy when feasibility is "high"
  + COMPETITIVE_DENSITY_BOOST     → competitive_analysis when more than
                                    MANY_COMPETITORS competitors are listed
Follow-ups then apply the discussed-category decay / undiscussed boost
from thresholds.py.
"""

CATEGORIES = (
    "market_validation",
    "competitive_analysis",
    "risk_assessment",
    "technical_feasibility",
    "execution_strategy",
)

BASE_PRIORITY = {
    "market_validation":        80,
    "competitive_analysis":     70,
    "risk_assessment":          65,
    "technical_feasibility":    60,
    "execution_strategy":       55,
}

LOW_FEASIBILITY_RISK_BOOST          = 20
HIGH_FEASIBILITY_EXECUTION_BOOST    = 10
COMPETITIVE_DENSITY_BOOST           = 10
MANY_COMPETITORS                    = 3

# Weight of the gap's own score in relevance_score (the rest comes from priority)
GAP_SCORE_RELEVANCE_WEIGHT          = 0.4

# First template of each category is the opening question
QUESTION_TEMPLATES = {
    "market_validation": (
        "How can I validate real customer demand for {gap}?",
        "Who is the ideal early adopter for {gap}?",
        "How large is the addressable market for {gap}?",
        "What pricing would customers accept for {gap}?",
        "Which signals would prove the market wants {gap}?",
    ),
    "competitive_analysis": (
        "Who are the closest competitors to {gap} today?",
        "How could I differentiate {gap} from existing alternatives?",
        "Why haven't incumbents already built {gap}?",
        "What would stop a larger competitor from copying {gap}?",
    ),
    "risk_assessment": (
        "What are the biggest risks in pursuing {gap}?",
        "What could cause {gap} to fail in its first year?",
        "Which assumptions behind {gap} should I test first?",
        "How would a downturn affect demand for {gap}?",
    ),
    "technical_feasibility": (
        "What would it take technically to build {gap}?",
        "Which parts of {gap} are hardest to engineer?",
        "Could a small team ship a first version of {gap}?",
        "Which existing tools or platforms could speed up {gap}?",
    ),
    "execution_strategy": (
        "What should the first 90 days of building {gap} look like?",
        "How should I launch {gap} to my first customers?",
        "What team would I need to execute on {gap}?",
        "Which milestones should I hit before raising money for {gap}?",
    ),
}

# Words that mark a category as already discussed in the conversation
CATEGORY_KEYWORDS = {
    "market_validation":        ("market", "demand", "customer", "customers", "audience", "pricing", "validate"),
    "competitive_analysis":     ("competitor", "competitors", "competition", "compete", "alternative", "alternatives", "differentiate"),
    "risk_assessment":          ("risk", "risks", "challenge", "challenges", "fail", "failure", "threat", "obstacle"),
    "technical_feasibility":    ("technical", "technology", "build", "engineer", "engineering", "develop", "feasible"),
    "execution_strategy":       ("launch", "plan", "strategy", "timeline", "roadmap", "milestone", "milestones", "team"),
}
