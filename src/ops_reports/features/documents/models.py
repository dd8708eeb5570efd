"""Document store models.

Marketplace records (orders, vendors, customers) are kept as schemaless JSON
documents grouped by collection name, mirroring the shape they have in the
mobile apps' Firestore project. Nothing here interprets the document bodies;
the reports feature normalises them on read."""

from tortoise import fields, models
from ksuid import ksuid


def generate_ksuid():
    """Generate a K-Sortable Unique IDentifier (KSUID).

    Used as the document id when an imported record does not carry one.
    KSUIDs are URL-safe, timestamp prefixed and sort chronologically.

    Returns:
        str: A string representation of the generated KSUID.
    """
    return str(ksuid.Ksuid())


class TimestampMixin(models.Model):
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        abstract = True


class Document(TimestampMixin):
    id = fields.IntField(primary_key=True)
    collection = fields.CharField(max_length=64, db_index=True)
    doc_id = fields.CharField(max_length=128, default=generate_ksuid)
    data = fields.JSONField(default=dict)

    def __str__(self):
        return f"{self.collection}/{self.doc_id}"

    class Meta:
        table = "documents"
        unique_together = (("collection", "doc_id"),)
        ordering = ["id"]
