"""
Generative profile narrative (optional).

Sends a templated trait/score summary to an OpenAI-compatible chat-completions
gateway and returns the prose it produces. The response is treated as an opaque
string.

Failure policy:
- This is the one place an external failure is recovered locally. If the path is
  disabled, has no credentials, the HTTP call fails, or the payload has no usable
  text, the template narrative is returned instead. There are no retries.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import httpx

from erranza.config.settings import Settings
from erranza.core.http import post_json
from erranza.domain.models import MatchResult, ProfileNarrative, PsychometricProfile, TraitVector
from erranza.narrative.templates import build_profile_narrative

logger = logging.getLogger(__name__)

PostJson = Callable[..., Any]


class NarrativeUnavailable(RuntimeError):
    """The generative service produced no usable narrative."""


def build_prompt(
    traits: TraitVector,
    profile: PsychometricProfile,
    matches: list[MatchResult],
    *,
    name: str | None = None,
) -> str:
    top1, top2 = traits.top_sensory
    match_lines = "\n".join(
        f"- {m.destination_name}: fit {m.fit_score:.1f} "
        f"(energy {m.breakdown.energy:.0f}, social {m.breakdown.social:.0f}, "
        f"sensory {m.breakdown.sensory:.0f}, luxury {m.breakdown.luxury:.0f})"
        for m in matches
    )
    return f"""Generate a personalized SoulPrint narrative for {name or "this traveller"}.

TRAVEL TRAITS (0-100):
- Energy={traits.energy:.1f} (0 restorative, 100 achievement), Social={traits.social:.1f}, Luxury={traits.luxury:.1f}, Pace={traits.pace:.1f}
- Sensory priorities: {top1}, {top2}

PSYCHOMETRIC PROFILE:
- Big Five: E={profile.extraversion:.1f}, O={profile.openness:.1f}, C={profile.conscientiousness:.1f}, A={profile.agreeableness:.1f}, ES={profile.emotional_stability:.1f}
- Travel: SF={profile.spontaneity:.1f}, AO={profile.adventure_orientation:.1f}, EA={profile.environmental_adaptation:.1f}, TFI={profile.travel_freedom_index:.1f}
- Tensions: Flow={profile.tension_flow:.1f}, Risk={profile.tension_risk:.1f}
- Tribe: {profile.tribe} ({profile.tribe_confidence})

TOP DESTINATION MATCHES:
{match_lines or "- none"}

Create a 2-3 paragraph narrative that:
1. Opens with an evocative headline capturing their essence
2. Describes their travel personality using the trait data
3. Highlights key tensions and growth opportunities
4. Explains why the top destinations resonate with them
5. Provides 2-3 specific recommendations for their journey

Be warm, insightful, and specific. Avoid platitudes."""


def extract_text(payload: Any) -> str:
    """Pull the first choice's message content out of a chat-completions payload."""
    try:
        content = payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise NarrativeUnavailable(f"Malformed narrative payload: {e!r}") from e
    if not isinstance(content, str) or not content.strip():
        raise NarrativeUnavailable("Narrative payload contained no text")
    return content.strip()


class NarrativeClient:
    """Calls the chat-completions gateway configured under `narrative.generative`."""

    def __init__(self, settings: Settings, *, post: PostJson | None = None):
        self._settings = settings
        self._post = post or post_json

    @property
    def available(self) -> bool:
        cfg = self._settings.narrative.generative
        return bool(cfg.enabled and cfg.api_key)

    def complete(self, prompt: str) -> str:
        cfg = self._settings.narrative.generative
        if not self.available:
            raise NarrativeUnavailable("Generative narrative is disabled or has no API key")

        url = cfg.base_url.rstrip("/") + "/chat/completions"
        payload = {
            "model": cfg.model,
            "messages": [
                {"role": "system", "content": cfg.system_prompt},
                {"role": "user", "content": prompt},
            ],
        }
        logger.info("Requesting generative narrative model=%s prompt_version=%s", cfg.model, cfg.prompt_version)
        response = self._post(
            url,
            payload=payload,
            headers={"Authorization": f"Bearer {cfg.api_key}"},
            timeout_seconds=self._settings.app.http_timeout_seconds,
        )
        return extract_text(response)


def generate_profile_narrative(
    traits: TraitVector,
    profile: PsychometricProfile,
    matches: list[MatchResult],
    *,
    settings: Settings,
    client: NarrativeClient | None = None,
    name: str | None = None,
) -> ProfileNarrative:
    """Return generative prose when available, otherwise the template narrative."""
    fallback = build_profile_narrative(traits, profile, settings=settings)
    client = client or NarrativeClient(settings)
    if not client.available:
        return fallback

    prompt = build_prompt(traits, profile, matches, name=name)
    try:
        text = client.complete(prompt)
    except (httpx.HTTPError, ValueError, NarrativeUnavailable) as e:
        logger.warning("Generative narrative failed, using template narrative: %s", e)
        return fallback

    return fallback.model_copy(
        update={"summary": text, "source": "generative", "model": settings.narrative.generative.model}
    )
