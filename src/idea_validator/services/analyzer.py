"""Stateless keyword heuristics over raw tweets and user profiles."""

from __future__ import annotations

import math
import re
from collections import Counter
from collections.abc import Iterable, Sequence

from idea_validator.domain.values import (
    AdopterProfile,
    InvestorProfile,
    SentimentBreakdown,
    TagCount,
    Trend,
    Tweet,
    TwitterUser,
)

POSITIVE = (
    "love", "great", "amazing", "excellent", "helpful", "good", "best",
    "awesome", "solved", "works", "perfect", "brilliant", "useful",
    "fantastic", "need this", "want this", "would pay", "would use",
)
NEGATIVE = (
    "hate", "bad", "terrible", "awful", "broken", "failed", "sucks",
    "struggling", "problem", "issue", "frustrated", "annoying", "waste",
    "useless", "disappointing", "can't find", "wish there was",
)
PAIN_SIGNALS = (
    "i wish", "looking for", "struggling with", "need a tool", "anyone know",
    "how do i", "can't find", "is there a way", "help me", "frustrated",
    "problem with", "hate that", "wish someone", "does anyone", "need help",
    "stuck on", "can't figure",
)
INVESTOR_BIO_SIGNALS = (
    "investor", "vc", "venture capital", "angel", "fund", "partner at",
    "investing in", "portfolio", "seed", "series a", "backed by", "investing",
    "funding", "startup investor", "early stage",
)
# Looser set applied to user-search results.
INVESTOR_PROFILE_SIGNALS = (
    "investor", "vc", "venture", "angel", "fund", "partner", "portfolio",
    "seed", "series", "backed", "investing", "capital",
)
STOPWORDS = frozenset({
    "that", "this", "with", "have", "from", "they", "will", "been", "just",
    "your", "what", "when", "about", "there", "their", "would", "could",
    "should",
})

_NON_ALPHA = re.compile(r"[^a-z]")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _text(tweet: Tweet) -> str:
    return str(tweet.get("text") or "")


def _author(tweet: Tweet) -> TwitterUser:
    return tweet.get("author") or {}


def analyze_sentiment(tweets: Sequence[Tweet]) -> SentimentBreakdown:
    """Classify each tweet by positive/negative keyword counts."""
    if not tweets:
        return SentimentBreakdown(positive=0, negative=0, neutral=0)
    positive = negative = neutral = 0
    for tweet in tweets:
        text = _text(tweet).lower()
        pos = sum(1 for word in POSITIVE if word in text)
        neg = sum(1 for word in NEGATIVE if word in text)
        if pos > neg:
            positive += 1
        elif neg > pos:
            negative += 1
        else:
            neutral += 1
    total = len(tweets)
    return SentimentBreakdown(
        positive=round_half_up(positive / total * 100),
        negative=round_half_up(negative / total * 100),
        neutral=round_half_up(neutral / total * 100),
    )


def extract_trending_topics(
    tweets: Sequence[Tweet],
    max_hashtags: int = 8,
    max_keywords: int = 10,
) -> tuple[tuple[TagCount, ...], tuple[TagCount, ...]]:
    """Return the most frequent hashtags and long words across *tweets*."""
    tags: Counter[str] = Counter()
    words: Counter[str] = Counter()
    for tweet in tweets:
        entities = tweet.get("entities") or {}
        for tag in entities.get("hashtags") or []:
            text = str(tag.get("text") or "").lower()
            if text:
                tags[text] += 1
        for raw in _text(tweet).split():
            word = _NON_ALPHA.sub("", raw.lower())
            if len(word) > 4 and word not in STOPWORDS:
                words[word] += 1
    hashtags = tuple(TagCount(f"#{t}", c) for t, c in tags.most_common(max_hashtags))
    keywords = tuple(TagCount(w, c) for w, c in words.most_common(max_keywords))
    return hashtags, keywords


def match_trends(idea: str, trends: Iterable[Trend]) -> list[Trend]:
    """Trends whose name or query mentions a word (> 3 chars) of the idea."""
    idea_words = [w for w in idea.lower().split() if len(w) > 3]
    matched: list[Trend] = []
    for trend in trends:
        name = str(trend.get("name") or "").lower()
        target = trend.get("target") or {}
        query = str(target.get("query") or "").lower() if isinstance(target, dict) else ""
        if any(w in name or w in query for w in idea_words):
            matched.append(trend)
    return matched


def filter_adopters(tweets: Sequence[Tweet], limit: int = 10) -> list[AdopterProfile]:
    """Tweets voicing a pain signal, as potential early adopters."""
    adopters: list[AdopterProfile] = []
    for tweet in tweets:
        text = _text(tweet)
        lowered = text.lower()
        signal = next((s for s in PAIN_SIGNALS if s in lowered), None)
        if signal is None:
            continue
        author = _author(tweet)
        adopters.append(
            AdopterProfile(
                username=str(author.get("userName") or "unknown"),
                name=str(author.get("name") or "Unknown"),
                avatar=author.get("profilePicture"),
                tweet=text,
                url=str(tweet.get("url") or ""),
                likes=int(tweet.get("likeCount") or 0),
                retweets=int(tweet.get("retweetCount") or 0),
                created_at=str(tweet.get("createdAt") or ""),
                pain_signal=signal,
            )
        )
        if len(adopters) >= limit:
            break
    return adopters


def filter_funders(tweets: Sequence[Tweet], limit: int = 10) -> list[InvestorProfile]:
    """Tweets whose author bio reads like an investor's."""
    funders: list[InvestorProfile] = []
    for tweet in tweets:
        author = _author(tweet)
        bio = str(author.get("description") or "")
        if not any(s in bio.lower() for s in INVESTOR_BIO_SIGNALS):
            continue
        funders.append(
            InvestorProfile(
                username=str(author.get("userName") or "unknown"),
                name=str(author.get("name") or "Unknown"),
                avatar=author.get("profilePicture"),
                bio=bio,
                tweet=_text(tweet),
                url=str(tweet.get("url") or ""),
                followers=int(author.get("followers") or 0),
                verified=bool(author.get("isBlueVerified")),
                created_at=str(tweet.get("createdAt") or ""),
            )
        )
        if len(funders) >= limit:
            break
    return funders


def investor_profiles(users: Iterable[TwitterUser]) -> list[InvestorProfile]:
    """User-search results with an investor-like bio, first occurrence per handle."""
    seen: set[str] = set()
    profiles: list[InvestorProfile] = []
    for user in users:
        bio = str(user.get("description") or "")
        handle = str(user.get("userName") or "")
        if not any(s in bio.lower() for s in INVESTOR_PROFILE_SIGNALS) or handle in seen:
            continue
        seen.add(handle)
        profiles.append(
            InvestorProfile(
                username=handle,
                name=str(user.get("name") or ""),
                bio=bio,
                followers=int(user.get("followers") or 0),
                verified=bool(user.get("isBlueVerified")),
                avatar=user.get("profilePicture"),
            )
        )
    return profiles


def average(tweets: Sequence[Tweet], field: str) -> float:
    if not tweets:
        return 0.0
    return sum(float(t.get(field) or 0) for t in tweets) / len(tweets)


def tweet_summary(tweets: Iterable[Tweet], limit: int = 12) -> str:
    """One line per tweet for LLM prompts."""
    lines = []
    for tweet in list(tweets)[:limit]:
        author = _author(tweet).get("userName") or "?"
        lines.append(
            f"@{author} [likes {tweet.get('likeCount') or 0} | "
            f"RTs {tweet.get('retweetCount') or 0}]: {_text(tweet)}"
        )
    return "\n".join(lines)
