"""Research stages.

Each stage is an ``async`` function ``(state, ctx) -> patch`` that reads the
run state, talks to the external services in ``ctx.services`` and returns a
dict holding only the field it owns.  Stages are wrapped by
:func:`idea_validator.graph.wrapper.wrap_stage` before they reach the graph,
so an exception here degrades to the stage's fallback instead of aborting
the run.

External calls go through :func:`gather_all`, so a single failed or slow
call only empties its own slice of the result.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from idea_validator.domain.enums import EventKind, QueryIntent, VerdictSource
from idea_validator.domain.schemas import Verdict
from idea_validator.domain.values import (
    AdopterData,
    CommunityData,
    DemandData,
    FunderData,
    TrendsData,
    WebIntelData,
    WebSearchResult,
)
from idea_validator.graph.context import RunContext
from idea_validator.infrastructure.config import PipelineConfig
from idea_validator.services import prompts
from idea_validator.services.analyzer import (
    analyze_sentiment,
    average,
    extract_trending_topics,
    filter_adopters,
    filter_funders,
    investor_profiles,
    match_trends,
    round_half_up,
    tweet_summary,
)
from idea_validator.services.extraction import Parsed, extract_json_object, extract_model
from idea_validator.services.fallbacks import (
    complete_query_plan,
    fallback_query_plan,
    fallback_verdict,
    query_for,
)
from idea_validator.services.fanout import dedupe_by_key, gather_all

logger = logging.getLogger(__name__)

State = Mapping[str, Any]

WEB_INTEL_PREFETCH = "web_intel"

WEB_QUERY_TEMPLATES = (
    "{idea} market size TAM startup landscape 2025",
    "{idea} competitors alternatives funding investors",
    "{idea} customer pain points use cases target market",
    "{idea} growth trends industry report",
)


def _idea(state: State) -> str:
    return str(state.get("idea") or "")


def _preview(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


# ===================================================================== #
#  Web intelligence (prefetched)                                         #
# ===================================================================== #


async def run_web_intel(ctx: RunContext, idea: str) -> WebIntelData:
    """Issue the fixed web-research queries and merge their results.

    Depends only on *idea*, which is why the planning stage can start it in
    the background before any other research has happened.  Failed queries
    are reported as warnings on the ``web_research`` stage.
    """
    cfg = ctx.config
    web = ctx.services.web
    queries = [template.format(idea=idea) for template in WEB_QUERY_TEMPLATES]
    labels = [f"web:{i}" for i in range(len(queries))]
    envelopes = await gather_all(
        [web.search(q, max_results=cfg.web_max_results) for q in queries],
        per_task_timeout=cfg.web_timeout,
        labels=labels,
    )
    ctx.emitter_for("web_research").warn_failed(envelopes, labels)
    results: list[WebSearchResult] = [e.value for e in envelopes if e.succeeded and e.value]
    unique = dedupe_by_key(
        [source for result in results for source in result.results], lambda s: s.url
    )
    answered = [r for r in results if r.answer]
    summary = "\n\n".join(f"**{r.query}**\n{r.answer}" for r in answered)
    logger.debug(
        "web intel: %d/%d queries ok, %d unique sources",
        len(results),
        len(queries),
        len(unique),
    )
    return WebIntelData(
        sources=tuple(unique[: cfg.web_source_limit]),
        summary=summary,
        source_count=len(unique),
        answered_queries=len(answered),
    )


# ===================================================================== #
#  Stage 1: planning                                                     #
# ===================================================================== #


async def plan_queries(state: State, ctx: RunContext) -> dict[str, Any]:
    """Generate the query plan; kick off the web-intel prefetch first."""
    em = ctx.emitter_for("plan_queries")
    idea = _idea(state)
    em.started("Planning research strategy...")

    ctx.prefetcher.start(WEB_INTEL_PREFETCH, lambda: run_web_intel(ctx, idea))
    em.info("Web research started in parallel")

    credits = await ctx.services.twitter.get_credits()
    if credits is not None:
        em.info(f"Twitter API credits remaining: {credits:,}", credits=credits)

    planner = ctx.services.planner
    em.llm_call(f"[{planner.label}] Generating smart search queries...")
    text = await planner.complete(
        prompts.PLANNER_SYSTEM, prompts.planner_prompt(idea, str(state.get("description") or ""))
    )

    result = extract_json_object(text)
    if isinstance(result, Parsed):
        plan = complete_query_plan(idea, result.value)
    else:
        logger.info("planner output unusable (%s); using template plan", result.reason)
        em.warning("Planner returned no usable JSON - using template queries")
        plan = fallback_query_plan(idea)

    em.emit(EventKind.PLAN, f"{len(QueryIntent)} search queries generated", queries=plan.model_dump())
    for intent, query in plan.items():
        em.info(f'  [{intent}] "{_preview(query, ctx.config.query_preview_chars)}"')
    em.completed("Query plan ready")
    return {"queries": plan}


# ===================================================================== #
#  Stage 2: trends                                                       #
# ===================================================================== #


async def fetch_trends(state: State, ctx: RunContext) -> dict[str, Any]:
    em = ctx.emitter_for("fetch_trends")
    cfg = ctx.config
    twitter = ctx.services.twitter
    idea = _idea(state)
    em.started("Scanning live Twitter trends...")

    em.tool_call(f"get_trends(woeid={cfg.worldwide_woeid}) + get_trends(woeid={cfg.usa_woeid})")
    trend_labels = ["trends:world", "trends:usa"]
    world, usa = await gather_all(
        [
            twitter.get_trends(cfg.worldwide_woeid, cfg.trend_count),
            twitter.get_trends(cfg.usa_woeid, cfg.trend_count),
        ],
        per_task_timeout=cfg.twitter_timeout,
        labels=trend_labels,
    )
    em.warn_failed([world, usa], trend_labels)
    world_trends = world.value_or([])
    usa_trends = usa.value_or([])
    all_trends = [*world_trends, *usa_trends]
    matched = match_trends(idea, all_trends)
    em.tool_result(
        f"{len(world_trends)} worldwide + {len(usa_trends)} USA trends, {len(matched)} matched"
    )

    query = query_for(state, QueryIntent.TREND_SCAN, f"{idea} -is:retweet lang:en")
    em.tool_call(f'search_tweets("{_preview(query, cfg.query_preview_chars)}")')
    search_labels = ["trends:context", "trends:top"]
    context, top = await gather_all(
        [twitter.search_tweets(query, 20), twitter.search_top_tweets(idea, 10)],
        per_task_timeout=cfg.twitter_timeout,
        labels=search_labels,
    )
    em.warn_failed([context, top], search_labels)
    context_tweets = context.value_or([])
    top_tweets = top.value_or([])
    hashtags, keywords = extract_trending_topics([*context_tweets, *top_tweets])
    em.tool_result(f"{len(context_tweets)} context tweets, {len(top_tweets)} top tweets")

    planner = ctx.services.planner
    em.llm_call(f"[{planner.label}] Analysing trend signals...")
    insights = await planner.complete(
        prompts.TREND_SYSTEM,
        prompts.trend_prompt(
            idea,
            ", ".join(str(t.get("name")) for t in all_trends[:15]),
            ", ".join(str(t.get("name")) for t in matched),
            tweet_summary([*top_tweets, *context_tweets], 12),
        ),
    )

    data = TrendsData(
        worldwide_count=len(world_trends),
        usa_count=len(usa_trends),
        matched=tuple(matched),
        all_trends=tuple(all_trends[:20]),
        hashtags=hashtags,
        keywords=keywords,
        context_tweets=tuple(context_tweets[:10]),
        top_tweets=tuple(top_tweets[:6]),
        insights=insights,
    )
    em.completed(f"Trends analysed: {len(matched)} matched, {len(hashtags)} hashtags")
    return {"trends_data": data}


# ===================================================================== #
#  Stage 3: demand                                                       #
# ===================================================================== #


def demand_score(
    recent_count: int,
    positive_pct: int,
    avg_likes: float,
    avg_retweets: float,
    config: PipelineConfig | None = None,
) -> int:
    """Weighted 0-100 demand score from volume, sentiment and engagement."""
    cfg = config or PipelineConfig()
    raw = (
        recent_count / 30 * cfg.demand_volume_weight
        + positive_pct * cfg.demand_sentiment_weight
        + min(avg_likes / cfg.demand_likes_divisor, cfg.demand_likes_cap)
        + min(avg_retweets / cfg.demand_retweet_divisor, cfg.demand_retweet_cap)
    )
    return min(100, round_half_up(raw))


async def demand_check(state: State, ctx: RunContext) -> dict[str, Any]:
    em = ctx.emitter_for("demand_check")
    cfg = ctx.config
    twitter = ctx.services.twitter
    idea = _idea(state)
    em.started("Measuring market demand...")

    recent_q = query_for(state, QueryIntent.DEMAND_RECENT, idea)
    top_q = query_for(state, QueryIntent.DEMAND_TOP, idea)
    competitor_q = query_for(state, QueryIntent.COMPETITOR_SEARCH, f"{idea} alternative")
    em.tool_call("search_recent_tweets x2 + search_top_tweets + competitor search")
    labels = ["demand:7d", "demand:30d", "demand:top", "demand:competitors"]
    recent, month, top, competitors = await gather_all(
        [
            twitter.search_recent_tweets(recent_q, 7, 20),
            twitter.search_recent_tweets(recent_q, 30, 20),
            twitter.search_top_tweets(top_q, 15),
            twitter.search_tweets(competitor_q, 10),
        ],
        per_task_timeout=cfg.twitter_timeout,
        labels=labels,
    )
    em.warn_failed([recent, month, top, competitors], labels)
    recent_tweets = recent.value_or([])
    month_tweets = month.value_or([])
    top_tweets = top.value_or([])
    competitor_tweets = competitors.value_or([])

    all_demand = [*recent_tweets, *month_tweets, *top_tweets]
    sentiment = analyze_sentiment(all_demand)
    avg_likes = average(all_demand, "likeCount")
    avg_retweets = average(all_demand, "retweetCount")
    score = demand_score(len(recent_tweets), sentiment.positive, avg_likes, avg_retweets, cfg)
    em.tool_result(
        f"{len(recent_tweets)} tweets (7d), {len(month_tweets)} (30d), "
        f"{sentiment.positive}% positive"
    )

    planner = ctx.services.planner
    em.llm_call(f"[{planner.label}] Assessing demand strength...")
    insights = await planner.complete(
        prompts.DEMAND_SYSTEM,
        prompts.demand_prompt(
            idea,
            len(recent_tweets),
            len(month_tweets),
            sentiment.positive,
            sentiment.negative,
            avg_likes,
            avg_retweets,
            tweet_summary(top_tweets[:8] or recent_tweets[:8]),
            tweet_summary(competitor_tweets[:5]),
        ),
    )

    data = DemandData(
        recent_count=len(recent_tweets),
        month_count=len(month_tweets),
        top_tweets=tuple(top_tweets[:6]),
        competitor_tweets=tuple(competitor_tweets[:5]),
        sentiment=sentiment,
        avg_likes=round(avg_likes, 1),
        avg_retweets=round(avg_retweets, 1),
        demand_score=score,
        insights=insights,
    )
    em.completed(f"Demand score: {score}/100", demand_score=score)
    return {"demand_data": data}


# ===================================================================== #
#  Stage 4: early adopters                                               #
# ===================================================================== #


async def adopter_search(state: State, ctx: RunContext) -> dict[str, Any]:
    em = ctx.emitter_for("adopter_search")
    cfg = ctx.config
    twitter = ctx.services.twitter
    idea = _idea(state)
    em.started("Finding early adopters...")

    pain_q = query_for(
        state,
        QueryIntent.ADOPTER_PAIN,
        fallback_query_plan(idea).adopter_pain,
    )
    em.tool_call(f'search_tweets("{_preview(pain_q, cfg.query_preview_chars)}")')
    labels = ["adopters:latest", "adopters:recent"]
    latest, recent = await gather_all(
        [
            twitter.search_tweets(pain_q, 20),
            twitter.search_recent_tweets(pain_q.replace(" lang:en", ""), 14, 20),
        ],
        per_task_timeout=cfg.twitter_timeout,
        labels=labels,
    )
    em.warn_failed([latest, recent], labels)
    pain_tweets = dedupe_by_key(
        [*latest.value_or([]), *recent.value_or([])],
        lambda t: t.get("id") or t.get("url") or t.get("text"),
    )
    adopters = filter_adopters(pain_tweets, limit=10)
    em.tool_result(f"{len(pain_tweets)} pain tweets, {len(adopters)} adopters with pain signals")

    if adopters:
        planner = ctx.services.planner
        em.llm_call(f"[{planner.label}] Profiling early adopters...")
        insights = await planner.complete(
            prompts.ADOPTER_SYSTEM,
            prompts.adopter_prompt(idea, prompts.adopter_block(adopters)),
        )
    else:
        insights = "No explicit pain-signal tweets found."

    data = AdopterData(
        count=len(adopters),
        users=tuple(adopters),
        pain_tweet_count=len(pain_tweets),
        insights=insights,
    )
    em.completed(f"{len(adopters)} early adopters found")
    return {"adopter_data": data}


# ===================================================================== #
#  Stage 5: funders                                                      #
# ===================================================================== #


async def funder_search(state: State, ctx: RunContext) -> dict[str, Any]:
    em = ctx.emitter_for("funder_search")
    cfg = ctx.config
    twitter = ctx.services.twitter
    idea = _idea(state)
    em.started("Searching for investors...")

    investor_q = query_for(state, QueryIntent.INVESTOR_SEARCH, f"{idea} investor")
    topic = " ".join(idea.split()[:2])
    funder_q = f"{idea} (investing OR invested OR portfolio OR funding) -is:retweet lang:en"
    em.tool_call("search_users x2 + investor tweet search")
    labels = ["funders:users", "funders:vc", "funders:tweets"]
    by_keyword, by_topic, tweets = await gather_all(
        [
            twitter.search_users(investor_q, 20),
            twitter.search_users(f"venture capital {topic}", 15),
            twitter.search_tweets(funder_q, 20),
        ],
        per_task_timeout=cfg.twitter_timeout,
        labels=labels,
    )
    em.warn_failed([by_keyword, by_topic, tweets], labels)
    profiles = investor_profiles([*by_keyword.value_or([]), *by_topic.value_or([])])
    tweet_investors = filter_funders(tweets.value_or([]), limit=10)
    em.tool_result(
        f"{len(profiles)} investor profiles, {len(tweet_investors)} investor tweets"
    )

    planner = ctx.services.planner
    em.llm_call(f"[{planner.label}] Analysing investor landscape...")
    insights = await planner.complete(
        prompts.FUNDER_SYSTEM,
        prompts.funder_prompt(
            idea,
            prompts.investor_block(profiles),
            "\n".join(f"@{f.username}: {f.tweet[:100]}" for f in tweet_investors[:5]),
        ),
    )

    data = FunderData(
        count=len(profiles) + len(tweet_investors),
        profile_investors=tuple(profiles[:10]),
        tweet_investors=tuple(tweet_investors),
        insights=insights,
    )
    em.completed(f"{data.count} investor signals found")
    return {"funder_data": data}


# ===================================================================== #
#  Stage 6: communities                                                  #
# ===================================================================== #


async def community_research(state: State, ctx: RunContext) -> dict[str, Any]:
    em = ctx.emitter_for("community_research")
    idea = _idea(state)
    em.started("Scanning Twitter communities...")

    query = query_for(state, QueryIntent.COMMUNITY_QUERY, idea)
    em.tool_call(f'search_community_tweets("{_preview(query, ctx.config.query_preview_chars)}")')
    labels = ["community search"]
    (envelope,) = await gather_all(
        [ctx.services.twitter.search_community_tweets(query, 15)],
        per_task_timeout=ctx.config.twitter_timeout,
        labels=labels,
    )
    em.warn_failed([envelope], labels)
    tweets = envelope.value_or([])

    data = CommunityData(count=len(tweets), tweets=tuple(tweets[:8]))
    em.completed(f"{len(tweets)} community posts found")
    return {"community_data": data}


# ===================================================================== #
#  Stage 7: web research (join prefetch)                                 #
# ===================================================================== #


async def web_research(state: State, ctx: RunContext) -> dict[str, Any]:
    """Join the prefetched web intel, starting it inline if nobody did."""
    em = ctx.emitter_for("web_research")
    em.started("Collecting web research...")

    handle = ctx.prefetcher.get(WEB_INTEL_PREFETCH)
    if handle is None:
        idea = _idea(state)
        em.info("No prefetched web research - running it now")
        handle = ctx.prefetcher.start(WEB_INTEL_PREFETCH, lambda: run_web_intel(ctx, idea))
    elif not handle.done:
        em.info("Waiting for web research to finish...")

    data: WebIntelData = await ctx.prefetcher.join(handle)
    em.tool_result(
        f"{data.source_count} unique sources, {data.answered_queries} answered queries"
    )
    em.completed(f"Web research: {data.source_count} sources")
    return {"web_intel_data": data}


# ===================================================================== #
#  Stage 8: synthesis                                                    #
# ===================================================================== #


async def synthesis(state: State, ctx: RunContext) -> dict[str, Any]:
    """Produce the verdict through three tiers.

    1. The synthesis model with the full research context.
    2. The planning model with a short prompt, when tier 1 raises or returns
       unusable output.
    3. :func:`fallback_verdict`, when tier 2 fails as well.

    Parse failures never surface as a stage failure.
    """
    em = ctx.emitter_for("synthesis")
    em.started("Synthesising verdict...")
    synthesizer = ctx.services.synthesizer
    planner = ctx.services.planner

    verdict: Verdict | None = None
    em.llm_call(f"[{synthesizer.label}] Synthesising all research...")
    try:
        text = await synthesizer.generate(prompts.synthesis_prompt(state))
    except Exception as exc:
        logger.warning("synthesis model failed: %s", exc)
        em.warning(f"{synthesizer.label} failed: {str(exc)[:80]} - using {planner.label}")
    else:
        result = extract_model(text, Verdict, exclude=("source",))
        if isinstance(result, Parsed):
            verdict = result.value.model_copy(update={"source": VerdictSource.SYNTHESIS})
        else:
            logger.info("synthesis output unusable: %s", result.reason)
            em.warning(f"{synthesizer.label} returned no usable verdict - using {planner.label}")

    if verdict is None:
        em.llm_call(f"[{planner.label}] Generating simplified verdict...")
        try:
            text = await planner.complete(prompts.DEGRADED_SYSTEM, prompts.degraded_prompt(state))
        except Exception as exc:
            logger.warning("degraded synthesis failed: %s", exc)
            em.warning(f"{planner.label} failed: {str(exc)[:80]} - using fallback verdict")
        else:
            result = extract_model(text, Verdict, exclude=("source",))
            if isinstance(result, Parsed):
                verdict = result.value.model_copy(update={"source": VerdictSource.DEGRADED})
            else:
                em.warning("Simplified verdict unusable - using fallback verdict")

    if verdict is None:
        verdict = fallback_verdict(state)

    em.completed(
        f"Verdict: {verdict.score}/100 - {verdict.recommendation.value.upper()}",
        score=verdict.score,
        recommendation=verdict.recommendation.value,
        source=verdict.source.value,
    )
    return {"verdict": verdict}


__all__ = [
    "WEB_INTEL_PREFETCH",
    "WEB_QUERY_TEMPLATES",
    "adopter_search",
    "community_research",
    "demand_check",
    "demand_score",
    "fetch_trends",
    "funder_search",
    "plan_queries",
    "run_web_intel",
    "synthesis",
    "web_research",
]
