"""Project complexity factor derived from aggregate finding statistics."""

from typing import Iterable, Optional

from statelessor.analyzers.base import Ecosystem, Finding
from statelessor.services.effort import round_effort

# Additive penalty per ecosystem; Java projects tend to be structurally heavier.
ECOSYSTEM_WEIGHTS: dict[str, float] = {
    Ecosystem.JAVA.value: 0.1,
    Ecosystem.DOTNET.value: 0.0,
}


def compute_complexity_factor(
    findings: Iterable[Finding],
    ecosystem: Optional[Ecosystem | str] = None,
) -> float:
    """Return the multiplier (>= 1.0, one decimal) applied to base efforts."""
    findings = list(findings)
    total_files = len({f.filename for f in findings})
    total_issues = len(findings)

    factor = 1.0

    if total_files > 100:
        factor += 0.5
    elif total_files > 50:
        factor += 0.3
    elif total_files > 20:
        factor += 0.1

    density = total_issues / max(total_files, 1)
    if density > 10:
        factor += 0.4
    elif density > 5:
        factor += 0.2

    high_count = sum(1 for f in findings if f.severity == "high")
    if high_count / max(total_issues, 1) > 0.5:
        factor += 0.3

    if ecosystem is not None:
        key = ecosystem.value if isinstance(ecosystem, Ecosystem) else str(ecosystem)
        factor += ECOSYSTEM_WEIGHTS.get(key, 0.0)

    return round_effort(factor)
