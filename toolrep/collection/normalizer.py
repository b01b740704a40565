"""Merges partial records from all sources into one record per identity key."""

import logging

from toolrep.models.model_tool import CanonicalRecord, Capability, SourceRecord

logger = logging.getLogger(__name__)

SCALAR_FIELDS = ("name", "description", "repository_url", "license", "owner", "owner_type")


def merge_capabilities(existing: list[Capability], incoming: list[Capability]) -> list[Capability]:
    """Merge capabilities by name.

    A capability seen again only fills in a missing description or details;
    populated fields are never overwritten. New names are appended.
    """
    result = [cap.model_copy() for cap in existing]
    index = {cap.name: i for i, cap in enumerate(result)}

    for cap in incoming:
        position = index.get(cap.name)
        if position is None:
            index[cap.name] = len(result)
            result.append(cap.model_copy())
            continue

        current = result[position]
        result[position] = current.model_copy(
            update={
                "description": current.description or cap.description,
                "details": current.details or cap.details,
            }
        )
    return result


def merge_records(existing: CanonicalRecord, incoming: SourceRecord) -> CanonicalRecord:
    """Fold one more record into a merged record.

    Scalars keep the first non-empty value. Categories are unioned in
    first-seen order. The latest metrics object wins.
    """
    update: dict = {}
    for field in SCALAR_FIELDS:
        if not getattr(existing, field):
            update[field] = getattr(incoming, field)

    categories = list(existing.categories)
    for category in incoming.categories:
        if category not in categories:
            categories.append(category)
    update["categories"] = categories

    update["capabilities"] = merge_capabilities(existing.capabilities, incoming.capabilities)
    update["metrics"] = incoming.metrics or existing.metrics

    return existing.model_copy(update=update)


class RecordNormalizer:
    """Groups source records by exact URL and merges each group.

    Record sets are folded in the order given, so the source listed first
    wins scalar conflicts.
    """

    def normalize(self, record_sets: list[list[SourceRecord]]) -> list[CanonicalRecord]:
        """Merge records from all sources.

        Args:
            record_sets: One list of records per source, in source order.

        Returns:
            One CanonicalRecord per distinct URL, in first-seen order.
        """
        merged: dict[str, CanonicalRecord] = {}
        skipped = 0

        for records in record_sets:
            for record in records:
                if not record.url:
                    skipped += 1
                    continue

                current = merged.get(record.url)
                if current is None:
                    merged[record.url] = CanonicalRecord.model_validate(record.model_dump())
                else:
                    merged[record.url] = merge_records(current, record)

        if skipped:
            logger.debug(f"Skipped {skipped} records without a URL")
        logger.debug(f"Normalized {sum(len(r) for r in record_sets)} records into {len(merged)}")
        return list(merged.values())
