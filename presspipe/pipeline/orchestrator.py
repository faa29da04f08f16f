"""The publishing pipeline: create and update flows against the upstream CMS.

Both flows run the same linear sequence of steps:

    Authenticate/Validate -> EmbedMedia -> ResolveTerms -> MapStatus -> Submit
    -> Verify (create only) -> Return

A failure before Submit aborts the flow with that step's error. Submit
failures abort with a submission error. Verification never rolls back a
completed write; it can only swap in a fresher copy or attach a warning.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import ValidationError as ModelValidationError

from ..auth import BearerToken
from ..client import WordPressClient
from ..config import Profile
from ..exceptions import (
    PressPipeError,
    APIError,
    AuthenticationError,
    ValidationError,
    UpstreamRejection,
)
from ..models.post import EditorialStatus, NormalizedPost, PostDraft
from ..models.result import PublishResult
from ..models.term import TaxonomyTerm, TagResolution
from ..utils.exceptions import status_code_for, upstream_message
from .media import MediaEmbedder
from .status import StatusMapper
from .submitter import PostSubmitter
from .terms import TermResolver
from .verifier import PostVerifier

logger = logging.getLogger(__name__)

Submission = Union[PostDraft, Dict[str, Any]]
TokenLike = Union[BearerToken, str, None]


class PublishingPipeline:
    """Turns author submissions into upstream post writes."""

    def __init__(
        self,
        client: WordPressClient,
        categories: Optional[Sequence[str]] = None,
        concurrent_taxonomy: bool = True,
    ) -> None:
        """Initialize the pipeline.

        Args:
            client: Upstream client, one per incoming request
            categories: Allowed category slugs; None accepts any slug
            concurrent_taxonomy: Look up the category while the tag pass runs
        """
        self.client = client
        self.categories = [slug.lower() for slug in categories] if categories is not None else None
        self.concurrent_taxonomy = concurrent_taxonomy

        self.embedder = MediaEmbedder()
        self.terms = TermResolver(client)
        self.status_mapper = StatusMapper()
        self.submitter = PostSubmitter(client)
        self.verifier = PostVerifier(client)

    @classmethod
    def from_profile(cls, profile: Profile, client: Optional[WordPressClient] = None) -> "PublishingPipeline":
        """Build a pipeline configured from a profile."""
        return cls(
            client or WordPressClient(profile=profile),
            categories=profile.categories,
            concurrent_taxonomy=profile.concurrent_taxonomy,
        )

    def create(self, submission: Submission, token: TokenLike = None) -> PublishResult:
        """Create a post from an author submission.

        Args:
            submission: PostDraft or the raw submission mapping
            token: Bearer token; falls back to the client's token

        Returns:
            Result with the created post, or the error that stopped the flow
        """
        try:
            return self._create(submission, token)
        except PressPipeError as e:
            return self._failure(e, "create")

    def update(self, post_id: Union[int, str], submission: Submission, token: TokenLike = None) -> PublishResult:
        """Update an existing post from an author submission.

        Args:
            post_id: Upstream post id
            submission: PostDraft or the raw submission mapping
            token: Bearer token; falls back to the client's token

        Returns:
            Result with the updated post, or the error that stopped the flow
        """
        try:
            return self._update(post_id, submission, token)
        except PressPipeError as e:
            return self._failure(e, "update")

    def _create(self, submission: Submission, token: TokenLike) -> PublishResult:
        self._authenticate(token)
        draft = self.validate(submission)

        body = self.embedder.embed(draft.body, draft.media, "create")
        category, tags = self.resolve_terms(draft)
        status = self.status_mapper.map(draft.status or EditorialStatus.DRAFT)

        normalized = NormalizedPost(
            title=draft.title,
            body=body,
            excerpt=draft.excerpt or "",
            status=status,
            category_ids=[category.id] if category else [],
            tag_ids=tags.ids,
        )

        created = self.submitter.create(normalized)
        outcome = self.verifier.verify(created)

        message = "Post created successfully"
        if outcome.reconciled:
            message += " (using fetched data)"

        return PublishResult(
            success=True,
            status_code=201,
            post=outcome.post,
            message=message,
            warning=outcome.warning,
            notes=self._notes(draft, category, tags),
            skipped_tags=list(tags.skipped),
        )

    def _update(self, post_id: Union[int, str], submission: Submission, token: TokenLike) -> PublishResult:
        post_id = self._validate_post_id(post_id)
        self._authenticate(token)
        draft = self.validate(submission)

        body = self.embedder.embed(draft.body, draft.media, "update")
        category, tags = self.resolve_terms(draft)
        status = self.status_mapper.map(draft.status) if draft.status else None

        # Tags the author did not send are left as they are upstream
        tags_submitted = "tag_names" in draft.model_fields_set

        normalized = NormalizedPost(
            title=draft.title,
            body=body,
            excerpt=draft.excerpt or "",
            status=status,
            category_ids=[category.id] if category else [],
            tag_ids=tags.ids if tags_submitted else None,
        )

        updated = self.submitter.update(post_id, normalized)
        if updated.id is None:
            raw = {**updated.raw, "id": post_id} if updated.raw else {}
            updated = updated.model_copy(update={"id": post_id, "raw": raw})

        return PublishResult(
            success=True,
            status_code=200,
            post=updated,
            message="Post updated successfully",
            notes=self._notes(draft, category, tags),
            skipped_tags=list(tags.skipped),
        )

    def _authenticate(self, token: TokenLike) -> BearerToken:
        if isinstance(token, BearerToken):
            bearer = token
        elif token is not None:
            bearer = BearerToken(token)
        elif self.client.token is not None:
            bearer = self.client.token
        else:
            raise AuthenticationError("Authentication required")

        self.client.token = bearer
        logger.debug("Authenticated request (token=%s, user=%s)", bearer.masked, bearer.user_id)
        return bearer

    def validate(self, submission: Submission) -> PostDraft:
        """Parse and check a submission.

        Raises:
            ValidationError: For malformed submissions, a blank title or
                body, or a category outside the editorial set
        """
        if isinstance(submission, PostDraft):
            draft = submission
        else:
            try:
                draft = PostDraft.model_validate(submission)
            except ModelValidationError as e:
                first = e.errors()[0]
                field = ".".join(str(part) for part in first.get("loc", ()))
                raise ValidationError(
                    f"Invalid submission: {first.get('msg', 'invalid value')}",
                    field=field or None,
                    details={"errors": e.errors(include_url=False)},
                )

        if not draft.title.strip() or not draft.body.strip():
            field = "title" if not draft.title.strip() else "body"
            raise ValidationError("Title and content are required", field=field)

        if draft.category_slug and self.categories is not None and draft.category_slug not in self.categories:
            raise ValidationError(f"Unknown category: {draft.category_slug}", field="category")

        return draft

    def resolve_terms(self, draft: PostDraft) -> Tuple[Optional[TaxonomyTerm], TagResolution]:
        """Resolve the draft's category and tags.

        The category lookup may run in a worker thread beside the tag pass;
        the tag pass itself is always sequential.
        """
        if self.concurrent_taxonomy and draft.category_slug and draft.tag_names:
            # Both threads share the client's session: the urllib3 pool checks
            # out one connection per request and the cookie jar locks its updates.
            with ThreadPoolExecutor(max_workers=1, thread_name_prefix="category-lookup") as executor:
                future = executor.submit(self.terms.resolve_category, draft.category_slug)
                tags = self.terms.resolve_or_create_tags(draft.tag_names)
                category = future.result()
        else:
            category = self.terms.resolve_category(draft.category_slug)
            tags = self.terms.resolve_or_create_tags(draft.tag_names)

        if tags.partial:
            logger.warning("Tags dropped during resolution: %s", ", ".join(tags.skipped))
        return category, tags

    @staticmethod
    def _validate_post_id(post_id: Union[int, str]) -> int:
        try:
            value = int(post_id)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid post id: {post_id!r}", field="id")
        if value <= 0:
            raise ValidationError(f"Invalid post id: {post_id!r}", field="id")
        return value

    @staticmethod
    def _notes(draft: PostDraft, category: Optional[TaxonomyTerm], tags: TagResolution) -> List[str]:
        notes = []
        if draft.category_slug and category is None:
            notes.append(f"Category '{draft.category_slug}' was not found; post saved without a category")
        if tags.partial:
            notes.append(f"Some tags could not be saved: {', '.join(tags.skipped)}")
        return notes

    @staticmethod
    def _failure(error: PressPipeError, operation: str) -> PublishResult:
        status_code = status_code_for(error)
        details: Dict[str, Any] = {}

        if isinstance(error, UpstreamRejection):
            message = upstream_message(error, f"Failed to {operation} post")
            details = dict(error.response_data)
        elif isinstance(error, APIError):
            message = f"Upstream unavailable: {error.message}"
            details = dict(error.response_data)
        else:
            message = error.message
            if isinstance(error, ValidationError) and error.field:
                details = {"field": error.field}

        logger.warning("Post %s failed (%d): %s", operation, status_code, message)
        return PublishResult(
            success=False,
            status_code=status_code,
            error=message,
            details=details,
        )
