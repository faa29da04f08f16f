"""Category and tag resolution against the upstream taxonomy collections."""

import logging
from typing import Iterable, List, Optional

from pydantic import ValidationError as ModelValidationError

from ..client import WordPressClient
from ..exceptions import APIError
from ..models.term import TaxonomyTerm, TagResolution

logger = logging.getLogger(__name__)

# Upstream error code for a create that collides with an existing term
TERM_EXISTS = "term_exists"


def normalize_tag_names(names: Iterable[str]) -> List[str]:
    """Trim names, drop blanks and dedupe case-insensitively.

    The first spelling of each name wins and input order is kept.
    """
    out: List[str] = []
    seen: set[str] = set()

    for raw in names:
        name = (raw or "").strip()
        if not name:
            continue
        key = name.casefold()
        if key in seen:
            continue
        seen.add(key)
        out.append(name)

    return out


class TermResolver:
    """Finds, and for tags creates, upstream taxonomy terms."""

    def __init__(self, client: WordPressClient) -> None:
        self.client = client

    def resolve_category(self, slug: Optional[str]) -> Optional[TaxonomyTerm]:
        """Look up a category by slug.

        Categories are never created. A failed lookup is treated the same as
        no match: the post is submitted without a category.

        Args:
            slug: Category slug

        Returns:
            The first matching category, or None
        """
        slug = (slug or "").strip()
        if not slug:
            return None

        try:
            matches = self.client.find_categories(slug)
        except APIError as e:
            logger.warning("Category lookup for %r failed: %s", slug, e.message)
            return None

        for item in matches:
            try:
                return TaxonomyTerm.model_validate(item)
            except ModelValidationError:
                logger.warning("Ignoring malformed category in lookup for %r: %r", slug, item)

        logger.info("No category found for slug %r", slug)
        return None

    def resolve_or_create_tags(self, names: Iterable[str]) -> TagResolution:
        """Resolve tag names into ids, creating missing tags.

        Tags are processed one at a time so that a single submission never
        issues two creates for the same new name. A tag whose lookup or create
        fails is skipped and reported in ``TagResolution.skipped``.

        Args:
            names: Tag names as entered by the author

        Returns:
            Resolved ids (unique, input order) and skipped names
        """
        resolution = TagResolution()

        for name in normalize_tag_names(names):
            try:
                tag_id = self._resolve_tag(name)
            except APIError as e:
                logger.warning("Dropping tag %r: %s", name, e.message)
                resolution.skipped.append(name)
                continue

            if tag_id is None:
                logger.warning("Dropping tag %r: upstream returned no id", name)
                resolution.skipped.append(name)
            elif tag_id not in resolution.ids:
                resolution.ids.append(tag_id)

        return resolution

    def find_tag(self, name: str) -> Optional[TaxonomyTerm]:
        """Find an existing tag whose name matches exactly, ignoring case."""
        for item in self.client.search_tags(name):
            try:
                term = TaxonomyTerm.model_validate(item)
            except ModelValidationError:
                continue
            if term.matches(name):
                return term
        return None

    def _resolve_tag(self, name: str) -> Optional[int]:
        existing = self.find_tag(name)
        if existing:
            logger.debug("Tag %r resolved to existing id %d", name, existing.id)
            return existing.id

        try:
            created = self.client.create_tag(name)
        except APIError as e:
            # Someone else created the tag between our search and create
            if e.error_code == TERM_EXISTS:
                term_id = self._existing_term_id(e)
                if term_id is not None:
                    logger.info("Tag %r already exists upstream as id %d", name, term_id)
                    return term_id
            raise

        try:
            term = TaxonomyTerm.model_validate(created)
        except ModelValidationError:
            return None

        logger.info("Created tag %r with id %d", name, term.id)
        return term.id

    @staticmethod
    def _existing_term_id(error: APIError) -> Optional[int]:
        data = error.response_data.get("data")
        if not isinstance(data, dict):
            return None
        try:
            return int(data.get("term_id"))
        except (TypeError, ValueError):
            return None
