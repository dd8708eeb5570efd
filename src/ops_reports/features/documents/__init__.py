"""Schemaless document store for marketplace records.

Orders, vendors and customers are stored as JSON bodies keyed by collection
and document id. The store does no validation; consumers such as the
reports feature are expected to default missing or malformed fields."""
