"""
robots.txt parsing and scoring.

Rules are grouped per RFC 9309: consecutive ``User-agent`` lines share the
directives that follow them. Scoring favours a declared sitemap, open access
for AI crawlers and the absence of a site-wide ``Disallow: /``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from siteprobe.protocols import RobotsRule, RobotsTxtAnalysis

AI_BOT_USER_AGENTS = (
    "gptbot",
    "chatgpt-user",
    "anthropic-ai",
    "claude-web",
    "claudebot",
    "cohere-ai",
    "perplexitybot",
    "google-extended",
    "bingbot",
    "googlebot",
)

ACCEPTABLE_DISALLOW_PATHS = frozenset(
    [
        p
        for base in (
            "/admin",
            "/login",
            "/register",
            "/cart",
            "/checkout",
            "/user",
            "/account",
            "/wp-admin",
            "/api",
            "/private",
            "/test",
            "/tmp",
            "/cgi-bin",
        )
        for p in (base, base + "/")
    ]
    + ["/*.pdf$"]
)

WILDCARD_BLOCK_LABEL = "* (all bots)"
MAX_PROBLEMATIC_PATHS = 5

MISSING = RobotsTxtAnalysis(
    issues=("robots.txt is missing",),
    recommendations=("Create a robots.txt file to control crawling",),
)


@dataclass
class _Group:
    agents: List[str] = field(default_factory=list)
    disallow: List[str] = field(default_factory=list)
    allow: List[str] = field(default_factory=list)


def parse_robots_txt(content: str) -> Tuple[List[RobotsRule], List[str]]:
    """Parse into one rule per user agent plus the declared sitemap URLs."""
    groups: List[_Group] = []
    sitemap_urls: List[str] = []
    current: Optional[_Group] = None
    collecting_agents = False

    for raw_line in content.splitlines():
        line = raw_line.split("#", 1)[0].strip()
        if not line or ":" not in line:
            continue
        directive, value = (part.strip() for part in line.split(":", 1))
        directive = directive.lower()

        if directive == "user-agent":
            if current is None or not collecting_agents:
                current = _Group()
                groups.append(current)
            current.agents.append(value.lower())
            collecting_agents = True
            continue

        if directive == "sitemap":
            if value:
                sitemap_urls.append(value)
            continue

        collecting_agents = False
        if current is None or not value:
            continue
        if directive == "disallow":
            current.disallow.append(value)
        elif directive == "allow":
            current.allow.append(value)

    rules = [
        RobotsRule(user_agent=agent, disallow=tuple(group.disallow), allow=tuple(group.allow))
        for group in groups
        for agent in group.agents
    ]
    return rules, sitemap_urls


def blocks_all_paths(rule: RobotsRule) -> bool:
    return any(path in ("/", "/*") for path in rule.disallow)


def _is_ai_agent(user_agent: str) -> bool:
    return any(bot in user_agent for bot in AI_BOT_USER_AGENTS)


def blocked_ai_bots(rules: List[RobotsRule]) -> List[str]:
    """AI crawlers denied the whole site, in first-seen order."""
    blocked: List[str] = []
    has_specific_ai_rules = any(_is_ai_agent(rule.user_agent) for rule in rules)

    for rule in rules:
        if not blocks_all_paths(rule):
            continue
        for bot in AI_BOT_USER_AGENTS:
            if bot in rule.user_agent and bot not in blocked:
                blocked.append(bot)
        if rule.user_agent == "*" and not has_specific_ai_rules and WILDCARD_BLOCK_LABEL not in blocked:
            blocked.append(WILDCARD_BLOCK_LABEL)
    return blocked


def analyze_robots_txt(content: Optional[str]) -> RobotsTxtAnalysis:
    """
    Score robots.txt ``content``; ``None`` means the file was not found.

    Scoring: 20 for presence, +30 for a Sitemap directive, +25 unless the
    wildcard group disallows everything (-50 if it does), +25 unless AI bots
    are blocked (-30 if they are) and +10 for a wildcard group. Clamped to 0-100.
    """
    if content is None:
        return MISSING

    if not content.strip():
        return RobotsTxtAnalysis(
            present=True,
            issues=("robots.txt is empty",),
            recommendations=("Add crawl rules to robots.txt",),
            score=10,
        )

    rules, sitemap_urls = parse_robots_txt(content)
    wildcard = next((rule for rule in rules if rule.user_agent == "*"), None)
    disallow_all = wildcard is not None and blocks_all_paths(wildcard)
    blocked = blocked_ai_bots(rules)

    issues: List[str] = []
    recommendations: List[str] = []
    score = 20

    if sitemap_urls:
        score += 30
    else:
        issues.append("No Sitemap directive in robots.txt")
        recommendations.append("Add a directive such as Sitemap: https://example.com/sitemap.xml")

    if disallow_all:
        score -= 50
        issues.append("Disallow: / blocks the whole site for search engines")
        recommendations.append('Remove "Disallow: /" or replace it with specific paths')
    else:
        score += 25

    if blocked:
        score -= 30
        issues.append(f"AI crawlers are blocked: {', '.join(blocked)}")
        recommendations.append("Allow AI crawlers (GPTBot, ChatGPT-User, PerplexityBot) to be cited in AI answers")
    else:
        score += 25

    if wildcard is not None:
        score += 10
        problematic = [
            path
            for path in wildcard.disallow
            if path.lower() not in ACCEPTABLE_DISALLOW_PATHS and path not in ("", "/")
        ]
        if len(problematic) > MAX_PROBLEMATIC_PATHS:
            issues.append(f"Too many disallowed paths ({len(problematic)})")
            recommendations.append("Review the Disallow rules, some of them are probably unnecessary")

    return RobotsTxtAnalysis(
        present=True,
        content=content,
        sitemap_urls=tuple(sitemap_urls),
        rules=tuple(rules),
        disallow_all=disallow_all,
        blocks_ai_bots=bool(blocked),
        blocked_ai_bots=tuple(blocked),
        has_wildcard_user_agent=wildcard is not None,
        issues=tuple(issues),
        recommendations=tuple(recommendations),
        score=max(0, min(100, score)),
    )
