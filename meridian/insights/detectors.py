"""
Rule-based insight detectors.

Each detector is a pure function of the pull requests in the analysis window
and the reference time ``now``. Detectors return an empty list when the data
is too thin for the rule to mean anything; they never raise for small input.
"""

from collections import Counter
from datetime import datetime, timedelta
from typing import Callable, List

from meridian.insights.stats import InsufficientSampleError, Sample, mean, std_dev
from meridian.insights.types import (
    InsightCategory,
    InsightFinding,
    InsightMetric,
    InsightType,
    PullRequestView,
)
from meridian.utils.timeutils import minutes_between

Detector = Callable[[List[PullRequestView], datetime], List[InsightFinding]]

REVIEW_WAIT_Z_THRESHOLD = 2.0
REVIEW_TIME_MIN_SAMPLE = 5

CYCLE_TIME_Z_THRESHOLD = 1.5
CYCLE_TIME_RECENT_DAYS = 7
CYCLE_TIME_BASELINE_DAYS = 30
CYCLE_TIME_RECENT_MIN_SAMPLE = 3
CYCLE_TIME_BASELINE_MIN_SAMPLE = 5

WORKLOAD_Z_THRESHOLD = 2.0
WORKLOAD_MIN_AUTHORS = 3
# Smallest spread the rest of the team is assumed to have, in PRs.
WORKLOAD_MIN_SPREAD = 1.0

WEEKEND_RATIO_THRESHOLD = 0.3
WEEKEND_MIN_PRS = 10

STALE_AFTER_DAYS = 14
OPEN_PR_CAPACITY = 15

FAST_CYCLE_TIME_MINUTES = 24 * 60
HIGH_MERGE_RATE = 0.8
MERGE_RATE_MIN_PRS = 10


def detect_review_bottlenecks(
    prs: List[PullRequestView], now: datetime
) -> List[InsightFinding]:
    """Open, unreviewed PRs whose wait is an outlier against time-to-first-review."""
    try:
        review_times = Sample(
            (pr.time_to_first_review for pr in prs), minimum=REVIEW_TIME_MIN_SAMPLE
        )
    except InsufficientSampleError:
        return []
    if review_times.std_dev == 0:
        return []

    stalled = []
    for pr in prs:
        if not pr.is_open or pr.reviews:
            continue
        wait = minutes_between(pr.created_at, now)
        if (
            review_times.z_score(wait) > REVIEW_WAIT_Z_THRESHOLD
            and wait > review_times.mean
        ):
            stalled.append(pr)

    if not stalled:
        return []
    return [
        InsightFinding(
            type=InsightType.WARNING,
            category=InsightCategory.BOTTLENECK,
            title="Statistical Review Bottleneck",
            description=(
                f"{len(stalled)} PRs are waiting >2 standard deviations longer "
                "than the team average for a first review"
            ),
            action="Prioritize these statistically stalled PRs",
            metric=InsightMetric(value=len(stalled), label="Stalled PRs"),
            affected_contributors=sorted({pr.author_login for pr in stalled}),
            priority=9,
        )
    ]


def detect_cycle_time_regression(
    prs: List[PullRequestView], now: datetime
) -> List[InsightFinding]:
    """Compare the last week's mean time-to-merge with the rest of the window."""
    recent_cutoff = now - timedelta(days=CYCLE_TIME_RECENT_DAYS)
    baseline_cutoff = now - timedelta(days=CYCLE_TIME_BASELINE_DAYS)
    merged = [
        pr
        for pr in prs
        if pr.is_merged and pr.merged_at is not None and pr.time_to_merge is not None
    ]
    try:
        recent = Sample(
            (pr.time_to_merge for pr in merged if pr.merged_at >= recent_cutoff),
            minimum=CYCLE_TIME_RECENT_MIN_SAMPLE,
        )
        baseline = Sample(
            (
                pr.time_to_merge
                for pr in merged
                if baseline_cutoff <= pr.merged_at < recent_cutoff
            ),
            minimum=CYCLE_TIME_BASELINE_MIN_SAMPLE,
        )
    except InsufficientSampleError:
        return []
    if baseline.std_dev == 0:
        return []

    z = baseline.z_score(recent.mean)
    if z <= CYCLE_TIME_Z_THRESHOLD:
        return []

    if baseline.mean > 0:
        change = f"+{(recent.mean - baseline.mean) / baseline.mean * 100:.0f}%"
    else:
        change = f"+{recent.mean - baseline.mean:.0f}m"
    return [
        InsightFinding(
            type=InsightType.WARNING,
            category=InsightCategory.VELOCITY,
            title="Significant Cycle Time Increase",
            description=(
                f"Recent cycle time is {z:.1f}σ above baseline ({change})"
            ),
            action="Investigate blockers or review capacity issues",
            metric=InsightMetric(value=change, label="Deviation"),
            priority=8,
        )
    ]


def detect_workload_imbalance(
    prs: List[PullRequestView], now: datetime
) -> List[InsightFinding]:
    """
    Flag authors whose PR count is an outlier against the rest of the team.

    Each author is scored against the other authors only. Scoring against
    the whole team would cap a lone outlier's z-score at (n-1)/sqrt(n), so a
    four-person team could never flag anyone.
    """
    counts = Counter(pr.author_login for pr in prs)
    if len(counts) < WORKLOAD_MIN_AUTHORS:
        return []
    if std_dev(list(counts.values())) == 0:
        return []

    findings = []
    for author, count in sorted(counts.items()):
        others = [c for login, c in counts.items() if login != author]
        others_mean = mean(others)
        spread = max(std_dev(others, others_mean), WORKLOAD_MIN_SPREAD)
        z = (count - others_mean) / spread
        if z <= WORKLOAD_Z_THRESHOLD:
            continue
        findings.append(
            InsightFinding(
                type=InsightType.CAUTION,
                category=InsightCategory.WORKLOAD,
                title="Workload Anomaly Detected",
                description=(
                    f"{author} has {count} PRs (Z-Score: {z:.1f}). This is "
                    "significantly higher than the team average."
                ),
                action="Verify this is sustainable; consider redistributing work.",
                metric=InsightMetric(value=count, label="PRs"),
                affected_contributors=[author],
                priority=7,
            )
        )
    return findings


def detect_burnout_signals(
    prs: List[PullRequestView], now: datetime
) -> List[InsightFinding]:
    if len(prs) <= WEEKEND_MIN_PRS:
        return []
    # weekday(): Saturday is 5, Sunday is 6.
    weekend = [pr for pr in prs if pr.created_at.weekday() >= 5]
    ratio = len(weekend) / len(prs)
    if ratio <= WEEKEND_RATIO_THRESHOLD:
        return []
    return [
        InsightFinding(
            type=InsightType.CAUTION,
            category=InsightCategory.WORKLOAD,
            title="High Weekend Activity",
            description=f"{ratio * 100:.0f}% of PRs created on weekends",
            action="Check team workload and work-life balance",
            metric=InsightMetric(value=f"{ratio * 100:.0f}%", label="Weekend PRs"),
            affected_contributors=sorted({pr.author_login for pr in weekend}),
            priority=7,
        )
    ]


def detect_stale_pull_requests(
    prs: List[PullRequestView], now: datetime
) -> List[InsightFinding]:
    cutoff = now - timedelta(days=STALE_AFTER_DAYS)
    stale = [pr for pr in prs if pr.is_open and pr.updated_at <= cutoff]
    if not stale:
        return []
    return [
        InsightFinding(
            type=InsightType.INFO,
            category=InsightCategory.QUALITY,
            title="Stale Pull Requests",
            description=f"{len(stale)} PRs haven't been updated in 14+ days",
            action="Close or revive these PRs",
            metric=InsightMetric(value=len(stale), label="Stale PRs"),
            priority=5,
        )
    ]


def detect_review_capacity(
    prs: List[PullRequestView], now: datetime
) -> List[InsightFinding]:
    open_count = sum(1 for pr in prs if pr.is_open)
    if open_count <= OPEN_PR_CAPACITY:
        return []
    return [
        InsightFinding(
            type=InsightType.WARNING,
            category=InsightCategory.BOTTLENECK,
            title="High Open PR Count",
            description=f"{open_count} open PRs may indicate review capacity issues",
            action="Increase review bandwidth or prioritize critical PRs",
            metric=InsightMetric(value=open_count, label="Open PRs"),
            priority=8,
        )
    ]


def detect_positive_patterns(
    prs: List[PullRequestView], now: datetime
) -> List[InsightFinding]:
    findings = []

    merge_times = [
        pr.time_to_merge for pr in prs if pr.is_merged and pr.time_to_merge is not None
    ]
    if merge_times:
        average = mean(merge_times)
        if average < FAST_CYCLE_TIME_MINUTES:
            hours = round(average / 60)
            findings.append(
                InsightFinding(
                    type=InsightType.SUCCESS,
                    category=InsightCategory.VELOCITY,
                    title="Excellent Cycle Time",
                    description=f"Team is merging PRs in {hours} hours on average",
                    action="Keep up the great work!",
                    metric=InsightMetric(value=f"{hours}h", label="Avg cycle time"),
                    priority=3,
                )
            )

    if len(prs) > MERGE_RATE_MIN_PRS:
        merge_rate = sum(1 for pr in prs if pr.is_merged) / len(prs)
        if merge_rate > HIGH_MERGE_RATE:
            findings.append(
                InsightFinding(
                    type=InsightType.SUCCESS,
                    category=InsightCategory.QUALITY,
                    title="High Merge Rate",
                    description=f"{merge_rate * 100:.0f}% of PRs are being merged",
                    action="Great collaboration and code quality!",
                    metric=InsightMetric(
                        value=f"{merge_rate * 100:.0f}%", label="Merge rate"
                    ),
                    priority=2,
                )
            )

    return findings


DETECTORS: List[Detector] = [
    detect_review_bottlenecks,
    detect_cycle_time_regression,
    detect_workload_imbalance,
    detect_burnout_signals,
    detect_stale_pull_requests,
    detect_review_capacity,
    detect_positive_patterns,
]
