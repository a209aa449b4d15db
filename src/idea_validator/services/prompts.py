"""Prompt text for the planning, analysis and synthesis LLM calls."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from idea_validator.domain.values import (
    AdopterData,
    AdopterProfile,
    CommunityData,
    DemandData,
    FunderData,
    InvestorProfile,
    TrendsData,
    WebIntelData,
)
from idea_validator.services.analyzer import tweet_summary

State = Mapping[str, Any]

# -- planning ---------------------------------------------------------------

PLANNER_SYSTEM = (
    "You are a market research strategist. Generate precise queries using "
    "Twitter advanced search syntax."
)


def planner_prompt(idea: str, description: str) -> str:
    return (
        f'Startup idea: "{idea}"\n'
        f'Description: "{description or "N/A"}"\n\n'
        "Generate queries in JSON:\n"
        "{\n"
        '  "trend_scan": "query for trending topics (-is:retweet lang:en)",\n'
        '  "demand_recent": "7 days demand query",\n'
        '  "demand_top": "most-engaged tweets query (min_faves:)",\n'
        '  "adopter_pain": "pain signal query (wish OR struggling OR frustrated OR \'looking for\')",\n'
        '  "investor_search": "keyword for investor profile search",\n'
        '  "competitor_search": "competitor mentions query",\n'
        '  "community_query": "keyword for Twitter community search"\n'
        "}\n"
        "Respond ONLY with valid JSON."
    )


# -- per-stage analysis -------------------------------------------------------

TREND_SYSTEM = "You are a market trend analyst. Extract real signals."
DEMAND_SYSTEM = "You are a market demand specialist."
ADOPTER_SYSTEM = "You are a customer discovery expert."
FUNDER_SYSTEM = "You are a VC analyst."


def trend_prompt(idea: str, trend_names: str, matched: str, tweets: str) -> str:
    return (
        f'Idea: "{idea}"\nTrends: {trend_names}\nMatched: {matched or "none"}\n'
        f"Tweets:\n{tweets}\n\n"
        "Extract: (1) Trending area? (2) Key pain points. (3) Conversation volume. "
        "(4) Emerging topics. Max 150 words."
    )


def demand_prompt(
    idea: str,
    recent_count: int,
    month_count: int,
    positive: int,
    negative: int,
    avg_likes: float,
    avg_retweets: float,
    tweets: str,
    competitor_tweets: str,
) -> str:
    return (
        f'Idea: "{idea}"\n'
        f"7d tweets: {recent_count}, 30d: {month_count}\n"
        f"Sentiment: {positive}% pos, {negative}% neg\n"
        f"Avg likes: {avg_likes:.1f}, Avg RTs: {avg_retweets:.1f}\n\n"
        f"Top tweets:\n{tweets}\n\n"
        f"Competitor tweets:\n{competitor_tweets}\n\n"
        "Assess: (1) Demand strength. (2) Problem urgency. (3) WTP signals. "
        "(4) Competition saturation. Max 150 words."
    )


def adopter_block(adopters: Sequence[AdopterProfile]) -> str:
    return "\n".join(
        f'@{a.username} [likes {a.likes}]: "{a.tweet[:120]}" - signal: "{a.pain_signal}"'
        for a in adopters[:10]
    )


def adopter_prompt(idea: str, block: str) -> str:
    return (
        f'Early adopters for "{idea}":\n{block}\n\n'
        "Describe: (1) Job title/role. (2) Specific pain. (3) How to reach. "
        "(4) WTP. (5) Best channel. Max 150 words."
    )


def investor_block(profiles: Sequence[InvestorProfile]) -> str:
    lines = [
        f"@{p.username} ({p.followers / 1000:.1f}k) - {p.bio[:80]}" for p in profiles[:8]
    ]
    return "\n".join(lines) or "No profiles found."


def funder_prompt(idea: str, block: str, tweets: str) -> str:
    return (
        f'Investors for "{idea}":\n{block}\n\nTweets:\n{tweets}\n\n'
        "Analyse: (1) Fund types. (2) Stage. (3) Thesis. (4) Who to pitch first. "
        "(5) Readiness. Max 150 words."
    )


# -- synthesis --------------------------------------------------------------

VERDICT_FIELDS = (
    "score, headline, why_it_works, why_it_fails, strengths(array), "
    "weaknesses(array), issues(array), best_points(array), idea_changes(array), "
    "new_additions(array), target_customer, go_to_market, competition_risk, "
    "timing, market_size, key_insight, red_flags(array), recommendation, "
    "investor_readiness, next_actions(array), top_funders(array of "
    "{name,twitter,focus,why}), web_insights"
)

_VERDICT_SCHEMA = """{
  "score": <integer 0-100>,
  "headline": "<one sharp memorable verdict sentence>",
  "why_it_works": "<3-4 sentences citing actual data>",
  "why_it_fails": "<3-4 sentences citing actual risks>",
  "strengths": ["<data-backed strength>", "<specific>", "<specific>"],
  "weaknesses": ["<data-backed weakness>", "<specific>", "<specific>"],
  "issues": ["<critical issue 1>", "<critical issue 2>", "<critical issue 3>"],
  "best_points": ["<best selling point 1>", "<best point 2>", "<best point 3>"],
  "idea_changes": ["<how to improve/pivot the idea 1>", "<change 2>", "<change 3>"],
  "new_additions": ["<new feature or product to add 1>", "<addition 2>", "<addition 3>"],
  "target_customer": "<precise: job title, company size, specific pain, WTP>",
  "go_to_market": "<concrete first 3 steps, who to talk to first>",
  "competition_risk": "low|medium|high",
  "timing": "too_early|perfect|too_late",
  "market_size": "<estimated TAM/SAM from web research + Twitter volume>",
  "key_insight": "<the single most important insight from all research>",
  "red_flags": ["<specific red flag 1>", "<specific red flag 2>"],
  "recommendation": "build|explore|pivot|abandon",
  "investor_readiness": "not_ready|early_stage|ready",
  "next_actions": ["<specific action 1>", "<specific action 2>", "<specific action 3>"],
  "top_funders": [
    {"name": "<VC firm or fund name>", "twitter": "<@handle if known>", "focus": "<investment thesis>", "why": "<why they'd fund this specific idea>"}
  ],
  "web_insights": "<key findings from web research - market size data, competitor landscape, funding activity>"
}"""


def _field(state: State, name: str, kind: type) -> Any:
    value = state.get(name)
    return value if isinstance(value, kind) else None


def synthesis_prompt(state: State) -> str:
    """Full-context prompt for the primary synthesis model."""
    trends: TrendsData | None = _field(state, "trends_data", TrendsData)
    demand: DemandData | None = _field(state, "demand_data", DemandData)
    adopters: AdopterData | None = _field(state, "adopter_data", AdopterData)
    funders: FunderData | None = _field(state, "funder_data", FunderData)
    community: CommunityData | None = _field(state, "community_data", CommunityData)
    web: WebIntelData | None = _field(state, "web_intel_data", WebIntelData)

    trend_list = ", ".join(f'"{t.get("name")}"' for t in trends.all_trends[:15]) if trends else ""
    matched = ", ".join(str(t.get("name")) for t in trends.matched) if trends else ""
    hashtags = ", ".join(h.label for h in trends.hashtags) if trends else ""
    top_tweets = tweet_summary(trends.top_tweets) if trends else ""
    adopter_lines = (
        "\n".join(f'@{a.username}: "{a.tweet[:100]}"' for a in adopters.users[:6])
        if adopters
        else ""
    )
    funder_lines = (
        "\n".join(
            f"@{p.username} ({p.followers} followers) - {p.bio[:80]}"
            for p in funders.profile_investors[:8]
        )
        if funders
        else ""
    )
    community_lines = tweet_summary(community.tweets, 5) if community else ""
    web_summary = web.summary[:3000] if web else ""
    sources = (
        "\n".join(
            f"[{i}] {s.title or 'Untitled'} - {s.url}\n    {s.content[:200]}"
            for i, s in enumerate(web.sources[:10], start=1)
        )
        if web
        else ""
    )
    sentiment = demand.sentiment if demand else None

    return f"""You are a world-class startup analyst with deep expertise in market research, venture capital, and product strategy.

STARTUP IDEA: "{state.get("idea", "")}"
DESCRIPTION: "{state.get("description") or "N/A"}"

=== TWITTER INTELLIGENCE ===

1. LIVE TRENDS: {trend_list or "N/A"}
   Matched: {matched or "none"}  |  Hashtags: {hashtags or "N/A"}

2. DEMAND METRICS:
   7-day tweets: {demand.recent_count if demand else 0} | 30-day: {demand.month_count if demand else 0}
   Demand score: {demand.demand_score if demand else 0}/100
   Sentiment: {sentiment.positive if sentiment else 0}% positive, {sentiment.negative if sentiment else 0}% negative
   Avg likes: {demand.avg_likes if demand else 0} | Avg RTs: {demand.avg_retweets if demand else 0}

3. TOP TWEETS:
{top_tweets}

4. EARLY ADOPTERS ({adopters.count if adopters else 0} found):
{adopter_lines or "None"}

5. INVESTORS ({funders.count if funders else 0} signals):
{funder_lines}

6. COMMUNITY POSTS ({community.count if community else 0}):
{community_lines}

=== WEB INTELLIGENCE ===
Summary:
{web_summary or "N/A"}

Sources:
{sources or "No sources available."}

=== YOUR TASK ===

Perform the most comprehensive, brutally honest startup validation. Cite specific data. Be concrete, not generic.

Respond in EXACTLY this JSON format (ONLY valid JSON):
{_VERDICT_SCHEMA}"""


DEGRADED_SYSTEM = "You are a startup analyst. Respond ONLY with valid JSON."


def degraded_prompt(state: State) -> str:
    """Short prompt for the secondary model when synthesis output is unusable."""
    demand: DemandData | None = _field(state, "demand_data", DemandData)
    adopters: AdopterData | None = _field(state, "adopter_data", AdopterData)
    funders: FunderData | None = _field(state, "funder_data", FunderData)
    web: WebIntelData | None = _field(state, "web_intel_data", WebIntelData)
    web_summary = (web.summary[:500] if web else "") or "N/A"
    return (
        f'Idea: "{state.get("idea", "")}". '
        f"Demand: {demand.demand_score if demand else 50}/100. "
        f"Adopters: {adopters.count if adopters else 0}. "
        f"Funders: {funders.count if funders else 0}. "
        f'Web data: "{web_summary}". '
        f"Return JSON with all fields: {VERDICT_FIELDS}."
    )
