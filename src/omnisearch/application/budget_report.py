"""Markdown rendering of ``BudgetStats`` for humans."""

from __future__ import annotations

from datetime import datetime

from omnisearch.shared.providers.types import BudgetStats, HealthStatus, QuotaUsage


def progress_bar(pct: int) -> str:
    filled = max(0, min(10, round(pct / 10)))
    return "[" + "█" * filled + "░" * (10 - filled) + "]"


def _quota_line(provider: str, data: QuotaUsage) -> str:
    pct = round(data.used / data.limit * 100) if data.limit else 100
    status = " **EXHAUSTED**" if data.remaining == 0 else ""
    return (
        f"- **{provider}**: {data.used:,}/{data.limit:,} "
        f"({data.remaining:,} remaining) {progress_bar(pct)}{status}"
    )


def format_budget_stats(stats: BudgetStats) -> str:
    lines: list[str] = ["# Search Budget Status\n"]

    lines.append("## Monthly Quotas (reset on 1st)")
    if stats.monthly:
        lines.extend(_quota_line(p, d) for p, d in stats.monthly.items())
    else:
        lines.append("- No monthly providers configured")

    lines.append("\n## One-Time Credits")
    if stats.lifetime:
        lines.extend(_quota_line(p, d) for p, d in stats.lifetime.items())
    else:
        lines.append("- No lifetime providers configured")

    if stats.paid_apis:
        lines.append("\n## Paid APIs (no free tier)")
        for provider, api in stats.paid_apis.items():
            spent = f" (~${api.estimated_cost:.2f} spent)" if api.estimated_cost > 0 else ""
            lines.append(f"- **{provider}**: {api.used} calls @ ${api.cost_per_query}/query{spent}")

    unhealthy = {p: h for p, h in stats.health.items() if h.status != HealthStatus.HEALTHY}
    if unhealthy:
        lines.append("\n## Provider Health Issues")
        for provider, health in unhealthy.items():
            retry = ""
            if health.cooldown_until:
                retry_at = datetime.fromisoformat(health.cooldown_until).strftime("%H:%M:%S UTC")
                retry = f" (retry after {retry_at})"
            lines.append(
                f"- **{provider}**: {health.status.value} ({health.failures} failures){retry}"
            )

    paid_total = sum(stats.paid.values())
    if paid_total > 0:
        lines.append("\n## Paid Usage (beyond free tier)")
        for provider, count in stats.paid.items():
            if count > 0:
                lines.append(f"- **{provider}**: {count:,} searches")

    lines.append("\n## Summary")
    monthly_used = sum(d.used for d in stats.monthly.values())
    monthly_limit = sum(d.limit for d in stats.monthly.values())
    lifetime_used = sum(d.used for d in stats.lifetime.values())
    lifetime_limit = sum(d.limit for d in stats.lifetime.values())
    paid_api_cost = sum(a.estimated_cost for a in stats.paid_apis.values())

    if monthly_limit > 0:
        lines.append(f"- Monthly: {monthly_used:,}/{monthly_limit:,} used this month")
    if lifetime_limit > 0:
        lines.append(f"- Lifetime: {lifetime_used:,}/{lifetime_limit:,} used total")
    if paid_api_cost > 0:
        lines.append(f"- Paid API spend: ~${paid_api_cost:.2f}")
    if paid_total > 0:
        lines.append(f"- Overage searches: {paid_total:,}")

    return "\n".join(lines)
