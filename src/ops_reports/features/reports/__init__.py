"""Advanced operations reports for the marketplace dashboard

This package turns the raw orders, vendors and customers collections into a
single analytics report: revenue by vendor and area, peak hours, weekday
demand, customer retention, delivery times and cancellations.

The work is split into small stages that can be tested on their own: the
normalizer ingests loosely typed documents, the lookups resolve display
names, the engine aggregates orders in one pass and the assembler derives
the final report. The router exposes the result as a read-only endpoint."""
