"""Conversational event assistant.

A message is classified into an :class:`Intent`, routed through a dispatch
table and answered from ranked events. When a text provider is configured
the answer is generated from a context block of those events (RAG); when
it is missing or fails, a deterministic template answer is used instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from ..errors import ProviderError
from ..models import Coordinates, RankedEvent, SearchFilters, UserPreferences
from .generation import TextProvider
from .intent import Intent, IntentAnalysis, classify_intent
from .retrieval import RetrievalRanker, build_event_context
from .storage import EventStore, build_search_query

logger = logging.getLogger(__name__)

ASSISTANT_SYSTEM_PROMPT: str = (
    "You are a friendly assistant for a map-based event discovery platform."
    " Answer using ONLY the events listed in the context. Be concise, mention"
    " event titles, dates and locations, and never invent events."
)

MAX_EVENTS_IN_REPLY: int = 5

HELP_TEXT: str = (
    "I can help you with:\n\n"
    "• Finding events by location, date, or category\n"
    "• Getting event details like timing and pricing\n"
    "• Recommending events that match your interests\n\n"
    'Try asking something like "Find music events this weekend" or '
    '"Show me free events tomorrow".'
)


@dataclass(slots=True)
class AssistantReply:
    message: str
    intent: Intent
    confidence: float
    events: List[RankedEvent] = field(default_factory=list)
    source: str = "template"


def _date(ranked: RankedEvent) -> str:
    start = ranked.event.start_time
    return start.strftime("%Y-%m-%d %H:%M") if start else "date TBD"


def _template_listing(query: str, events: List[RankedEvent]) -> str:
    if not events:
        return (
            f'I couldn\'t find any events matching "{query}". Try searching with '
            "different keywords like location, category, or date."
        )
    lines = [
        f"• {r.event.title} - {r.event.location} ({_date(r)})\n  {r.event.description[:100]}"
        for r in events[:3]
    ]
    plural = "s" if len(events) > 1 else ""
    return (
        f"I found {len(events)} event{plural} matching your search:\n\n"
        + "\n\n".join(lines)
        + "\n\nWould you like more details about any of these events?"
    )


def _template_when(query: str, events: List[RankedEvent]) -> str:
    if not events:
        return "I need more specific information to help with event timing. Try asking about a specific event or category."
    top = events[0]
    return f"{top.event.title} is scheduled for {_date(top)}. Location: {top.event.location}"


def _template_where(query: str, events: List[RankedEvent]) -> str:
    if not events:
        return "I need more information to help with event locations. Try asking about specific events or areas."
    locations = list(dict.fromkeys(r.event.location for r in events if r.event.location))
    if len(locations) == 1:
        return f"The event is located at {locations[0]}."
    return f"Events are happening at multiple locations: {', '.join(locations)}. Which location interests you most?"


def _template_price(query: str, events: List[RankedEvent]) -> str:
    if not events:
        return "I need more specific information to help with pricing. Try asking about a particular event."
    top = events[0].event
    if top.price is None:
        return f"Pricing information for {top.title} is not currently available. Please contact the organizer."
    if top.price == 0:
        return f"{top.title} is free to attend."
    return f"{top.title} costs ${top.price:.2f}."


TEMPLATES: Dict[Intent, Callable[[str, List[RankedEvent]], str]] = {
    Intent.WHEN: _template_when,
    Intent.WHERE: _template_where,
    Intent.PRICE: _template_price,
}


class EventAssistant:
    def __init__(
        self,
        store: EventStore,
        ranker: RetrievalRanker,
        provider: Optional[TextProvider] = None,
    ) -> None:
        self.store = store
        self.ranker = ranker
        self.provider = provider
        self._handlers: Dict[Intent, Callable[..., AssistantReply]] = {
            Intent.SEARCH: self._handle_search,
            Intent.WHEN: self._handle_search,
            Intent.WHERE: self._handle_search,
            Intent.PRICE: self._handle_search,
            Intent.ATTEND: self._handle_search,
            Intent.RECOMMEND: self._handle_recommend,
            Intent.GREETING: self._handle_greeting,
        }

    def reply(
        self,
        message: str,
        location: Optional[Coordinates] = None,
        preferences: Optional[UserPreferences] = None,
        deadline: Optional[float] = None,
    ) -> AssistantReply:
        analysis = classify_intent(message)
        handler = self._handlers.get(analysis.intent, self._handle_general)
        logger.info("Assistant routing '%s' to %s", message, analysis.intent.value)
        return handler(message, analysis, location, preferences, deadline)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _retrieve(
        self,
        query: str,
        filters: SearchFilters,
        location: Optional[Coordinates],
        preferences: Optional[UserPreferences],
        deadline: Optional[float],
    ) -> List[RankedEvent]:
        radius = self.ranker.effective_radius(None) if location is not None else None
        candidates = self.store.find(build_search_query(filters, location, radius))
        return self.ranker.rank(
            query,
            candidates,
            location=location,
            filters=filters,
            preferences=preferences,
            deadline=deadline,
        )

    def _generate(self, prompt: str) -> Optional[str]:
        if not self.provider:
            return None
        try:
            return self.provider.generate(prompt, system_prompt=ASSISTANT_SYSTEM_PROMPT, max_tokens=500)
        except ProviderError as exc:
            logger.warning("Assistant generation failed: %s – using template answer", exc)
            return None

    def _answer_from_events(
        self, message: str, analysis: IntentAnalysis, events: List[RankedEvent]
    ) -> AssistantReply:
        shown = events[:MAX_EVENTS_IN_REPLY]
        text = None
        if shown:
            context = build_event_context(shown)
            text = self._generate(f"Context events:\n\n{context}\n\nUser question: {message}")
        source = "llm" if text else "template"
        if not text:
            text = TEMPLATES.get(analysis.intent, _template_listing)(message, shown)
        return AssistantReply(
            message=text,
            intent=analysis.intent,
            confidence=analysis.confidence,
            events=shown,
            source=source,
        )

    # ------------------------------------------------------------------
    # Intent handlers
    # ------------------------------------------------------------------
    def _handle_search(self, message, analysis, location, preferences, deadline) -> AssistantReply:
        events = self._retrieve(message, analysis.filters, location, preferences, deadline)
        return self._answer_from_events(message, analysis, events)

    def _handle_recommend(self, message, analysis, location, preferences, deadline) -> AssistantReply:
        # preferences drive the ranking, so the free text is not used as a query
        events = self._retrieve("", analysis.filters, location, preferences, deadline)
        return self._answer_from_events(message, analysis, events)

    def _handle_greeting(self, message, analysis, location, preferences, deadline) -> AssistantReply:
        return AssistantReply(
            message="Hello! I can help you discover events near you. " + HELP_TEXT,
            intent=analysis.intent,
            confidence=analysis.confidence,
        )

    def _handle_general(self, message, analysis, location, preferences, deadline) -> AssistantReply:
        text = self._generate(f"User message: {message}\n\nReply briefly and offer help finding events.")
        return AssistantReply(
            message=text or f'I understand you\'re asking about "{message}". {HELP_TEXT}',
            intent=analysis.intent,
            confidence=analysis.confidence,
            source="llm" if text else "template",
        )


__all__ = ["AssistantReply", "EventAssistant"]
