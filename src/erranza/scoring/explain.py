"""
Small explainability formatting helpers.

Used by the CLI to print compact summaries of match results.
"""

from __future__ import annotations

from erranza.domain.models import MatchResult, TraitVector


def one_line_summary(match: MatchResult) -> str:
    """Render a compact single-line summary for a match result."""
    b = match.breakdown
    parts = [f"fit={match.fit_score:.1f}"]
    for name in ("energy", "social", "sensory", "luxury"):
        parts.append(f"{name}={getattr(b, name):.0f}")
    return " | ".join(parts)


def traits_summary(traits: TraitVector) -> str:
    top1, top2 = traits.top_sensory
    return (
        f"energy={traits.energy:.1f} social={traits.social:.1f} luxury={traits.luxury:.1f} "
        f"pace={traits.pace:.1f} sensory={top1},{top2} format={traits.format}"
    )
