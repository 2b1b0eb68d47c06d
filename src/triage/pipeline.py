"""Two-phase triage orchestration: a pure preview, then commit-or-discard.

``TriageService.preview`` gathers every suggestion the triage view shows
for one message without touching storage.  ``TriageService.commit`` applies
the decision the user approved to the message and its confirmed siblings
through the bulk coordinator.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from datetime import datetime

import structlog
from pydantic import BaseModel, ConfigDict, Field

from triage.commit.bulk import BatchResult, apply_to_all, apply_to_all_concurrent
from triage.commit.mutations import TriageDecision, build_apply
from triage.config import Settings, TriageRules, get_settings, load_triage_rules
from triage.domain.errors import EntityNotFoundError
from triage.domain.models import Campaign, Constituent, Message, Sender, Tag
from triage.domain.types import CasePriority, EntityType
from triage.matching.campaigns import CampaignMatch, match_campaigns
from triage.matching.siblings import SiblingMatch, find_campaign_siblings
from triage.matching.subject import generate_fingerprint
from triage.resilience.retry import with_retry
from triage.resolution.cases import CaseSuggestion, suggest_case_link
from triage.resolution.constituent import ResolutionResult, resolve_constituent
from triage.resolution.priority import suggest_priority
from triage.storage import StorageReader, StorageWriter
from triage.tags.reconciler import TagReconciliation, reconcile_tags
from triage.tags.suggestions import suggest_tags

logger = structlog.get_logger()


class TriagePreview(BaseModel):
    """Everything the triage view offers for one message.

    Attributes:
        message: The message being triaged.
        siblings: Other messages that would receive the same decision.
        campaign_matches: Active campaigns the message appears to belong to.
        resolution: Constituent resolution for the sender.
        case_suggestion: Existing cases the message could be linked to.
        priority: Suggested priority for a new case.
        tags: Selected tags reconciled against the persisted ones.
        suggested_tags: Keyword-matched tags not already selected.
    """

    model_config = ConfigDict(frozen=True)

    message: Message
    siblings: list[SiblingMatch] = Field(default_factory=list)
    campaign_matches: list[CampaignMatch] = Field(default_factory=list)
    resolution: ResolutionResult
    case_suggestion: CaseSuggestion
    priority: CasePriority
    tags: TagReconciliation
    suggested_tags: list[Tag] = Field(default_factory=list)

    @property
    def sibling_ids(self) -> list[str]:
        """Ids of the sibling messages, in pool order."""
        return [s.message.id for s in self.siblings]

    @property
    def resolved_constituent(self) -> Constituent | None:
        """The constituent the sender resolved to, when no choice is needed."""
        if self.resolution.requires_choice or self.resolution.best is None:
            return None
        return self.resolution.best.constituent


class TriageService:
    """Compute triage suggestions from a reader and commit decisions to a writer.

    Args:
        reader: Source of messages, campaigns, constituents, cases and tags.
        writer: Target for approved decisions.
        settings: Thresholds and weights; the cached settings when omitted.
        rules: Keyword lists; loaded from ``settings.rules_path`` when omitted.
    """

    def __init__(
        self,
        reader: StorageReader,
        writer: StorageWriter,
        settings: Settings | None = None,
        rules: TriageRules | None = None,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._settings = settings or get_settings()
        self._rules = rules or load_triage_rules(self._settings.rules_path)

    def _get_message(self, message_id: str) -> Message:
        for message in self._reader.list_messages():
            if message.id == message_id:
                return message
        raise EntityNotFoundError("message", message_id)

    def _persisted_tag_ids(self, message_id: str) -> set[str]:
        return {
            a.tag_id
            for a in self._reader.list_tag_assignments()
            if a.entity_type is EntityType.MESSAGE and a.entity_id == message_id
        }

    def preview(
        self,
        message_id: str,
        campaign_id: str | None = None,
        selected_tag_ids: Iterable[str] | None = None,
        now: datetime | None = None,
    ) -> TriagePreview:
        """Build the triage suggestions for a message.

        Args:
            message_id: The message the user opened.
            campaign_id: Campaign the user is assigning, if any.  Messages
                already in it are not offered as siblings.
            selected_tag_ids: The current tag selection.  Defaults to the
                persisted tags, which yields an all-unchanged reconciliation.
            now: Reference time for case recency.

        Returns:
            A ``TriagePreview``.

        Raises:
            EntityNotFoundError: If *message_id* is unknown.
        """
        message = self._get_message(message_id)
        settings = self._settings

        siblings = find_campaign_siblings(message, self._reader.list_messages(), campaign_id)
        campaign_matches = match_campaigns(
            message,
            self._reader.list_campaigns(),
            min_confidence=settings.campaign_min_confidence,
            limit=settings.campaign_match_limit,
        )

        resolution = resolve_constituent(
            Sender.from_message(message),
            self._reader.list_constituents(),
            self._reader.list_contacts(),
            body=message.body,
            settings=settings,
            rules=self._rules,
        )
        constituent = None
        if not resolution.requires_choice and resolution.best is not None:
            constituent = resolution.best.constituent

        case_suggestion = suggest_case_link(
            constituent,
            message,
            self._reader.list_cases(),
            self._reader.list_case_parties(),
            settings=settings,
            rules=self._rules,
            now=now,
        )
        priority = suggest_priority(
            message,
            campaign_matches,
            rules=self._rules,
            campaign_confidence=settings.campaign_low_priority_confidence,
        )

        original = self._persisted_tag_ids(message.id)
        selected = set(selected_tag_ids) if selected_tag_ids is not None else original
        tags = reconcile_tags(selected, original)
        suggested = suggest_tags(message, self._reader.list_tags(), exclude=tags.display_set)

        logger.info(
            "triage_preview_built",
            message_id=message.id,
            siblings=len(siblings),
            campaign_matches=len(campaign_matches),
            constituent_status=resolution.status.value,
            primary_case_id=case_suggestion.primary.case.id if case_suggestion.primary else None,
            priority=priority.value,
        )

        return TriagePreview(
            message=message,
            siblings=siblings,
            campaign_matches=campaign_matches,
            resolution=resolution,
            case_suggestion=case_suggestion,
            priority=priority,
            tags=tags,
            suggested_tags=suggested,
        )

    def commit(
        self,
        decision: TriageDecision,
        concurrent: bool = False,
        cancel: threading.Event | None = None,
    ) -> BatchResult:
        """Apply an approved decision to the primary message and its siblings.

        Args:
            decision: The user-approved decision.
            concurrent: Use the bounded thread pool instead of applying in order.
            cancel: Optional event that stops the batch early.

        Returns:
            The ``BatchResult`` of the bulk commit.

        Raises:
            InvalidInputError: If the decision has nothing to apply.
        """
        mutation = decision.to_mutation()
        apply = with_retry(build_apply(self._writer), attempts=self._settings.retry_attempts)
        targets = decision.target_ids

        logger.info(
            "triage_commit_started",
            primary_message_id=decision.primary_message_id,
            targets=len(targets),
            concurrent=concurrent,
        )

        if concurrent:
            return apply_to_all_concurrent(
                targets,
                mutation,
                apply,
                max_workers=self._settings.bulk_max_workers,
                cancel=cancel,
            )
        return apply_to_all(targets, mutation, apply, cancel=cancel)

    def create_campaign_from_message(
        self,
        message_id: str,
        name: str,
        description: str | None = None,
    ) -> Campaign:
        """Create a campaign whose fingerprint is taken from a message.

        The stored fingerprint is reused when the message has one, otherwise
        it is computed from the subject and body.

        Raises:
            EntityNotFoundError: If *message_id* is unknown.
            StorageError: If the writer rejects the campaign.
        """
        message = self._get_message(message_id)
        fingerprint = message.fingerprint_hash or generate_fingerprint(
            message.subject, message.body
        )
        campaign = self._writer.create_campaign(
            name,
            fingerprint_hash=fingerprint,
            description=description,
        )
        logger.info(
            "campaign_created_from_message",
            campaign_id=campaign.id,
            message_id=message.id,
            fingerprint=fingerprint,
        )
        return campaign
