import logging
from typing import Any, Iterable, List

from tortoise.transactions import in_transaction

from .models import Document, generate_ksuid

logger = logging.getLogger(__name__)

ORDERS = "orders"
VENDORS = "vendors"
CUSTOMERS = "customers"
COLLECTIONS = (ORDERS, VENDORS, CUSTOMERS)


async def fetch_collection(collection: str) -> List[Any]:
    """
    Returns every document in a collection as a plain field bag.

    The document id is exposed under "id" and wins over any "id" key stored
    in the body. Bodies that are not JSON objects are returned as stored so
    readers can reject them one by one. Documents come back in insertion order.
    """
    documents = await Document.filter(collection=collection).order_by("id")
    logger.debug(f"Fetched {len(documents)} document(s) from '{collection}'")
    return [_as_field_bag(doc) for doc in documents]


def _as_field_bag(doc: Document) -> Any:
    if doc.data is None:
        return {"id": doc.doc_id}
    if not isinstance(doc.data, dict):
        logger.warning(f"Document {doc} has a non-object body")
        return doc.data
    return {**doc.data, "id": doc.doc_id}


async def count_collection(collection: str) -> int:
    return await Document.filter(collection=collection).count()


async def upsert_documents(collection: str, records: Iterable[dict[str, Any]]) -> int:
    """
    Inserts or replaces documents in a collection inside one transaction.

    Each record's "id" key becomes the document id; records without one get
    a fresh KSUID. Returns the number of documents written.
    """
    written = 0
    async with in_transaction() as conn:
        for record in records:
            body = dict(record)
            doc_id = str(body.pop("id", "") or generate_ksuid())
            await Document.update_or_create(
                collection=collection, doc_id=doc_id, defaults={"data": body}, using_db=conn
            )
            written += 1
    logger.info(f"Upserted {written} document(s) into '{collection}'")
    return written
