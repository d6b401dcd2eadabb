"""
Global Filter Registrar

Walks every entity type on a SchemaBuilder and installs the removed-row filter
on each qualifying root type, ANDed with whatever filter was declared on that
type beforehand.

Subclass and override ``should_filter_entity`` / ``create_filter_expression``
to install a different global filter.
"""

import logging
from typing import Optional

from .combine import combine
from .predicates import Predicate
from .removable import create_removed_filter, is_removable
from .schema import EntityType, SchemaBuilder

logger = logging.getLogger(__name__)


class GlobalFilterRegistrar:
    """Installs one synthesized filter per eligible root entity type"""

    def should_filter_entity(self, entity_type: EntityType) -> bool:
        return is_removable(entity_type.cls)

    def create_filter_expression(self, entity: type) -> Optional[Predicate]:
        return create_removed_filter(entity)

    def configure_global_filters(self, builder: SchemaBuilder, entity_type: EntityType) -> bool:
        """Install the filter for one entity type; False when it was skipped"""
        # Derived types are covered by the filter on their root type
        if entity_type.base is not None:
            logger.debug("Skipping derived type %s (base %s)", entity_type.name, entity_type.base.__name__)
            return False
        if not self.should_filter_entity(entity_type):
            logger.debug("Skipping %s: not eligible for global filtering", entity_type.name)
            return False

        candidate = self.create_filter_expression(entity_type.cls)
        if candidate is None:
            logger.debug("Skipping %s: no filter expression", entity_type.name)
            return False

        existing = builder.query_filter(entity_type.cls)
        installed = candidate if existing is None else combine(existing, candidate)
        builder.set_query_filter(entity_type.cls, installed)
        logger.info(
            "Installed global query filter on %s%s: %r",
            "view " if entity_type.is_view else "",
            entity_type.name,
            installed,
        )
        return True

    def apply(self, builder: SchemaBuilder) -> int:
        """
        Configure every entity type on ``builder``.

        Returns the number of types that received a filter. A second call on
        the same builder is a no-op; a finalized builder raises SchemaFrozenError.
        """
        if not builder.mark_applied(type(self)):
            logger.warning("%s already applied to this schema; skipping", type(self).__name__)
            return 0

        installed = 0
        for entity_type in builder.entity_types():
            if self.configure_global_filters(builder, entity_type):
                installed += 1
        return installed
