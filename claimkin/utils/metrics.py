from prometheus_client import Counter

CLAIMS_SUBMITTED = Counter(
    "claimkin_claims_submitted_total",
    "Public claim submissions by outcome",
    ["outcome"],
)

ADDRESSES_IMPORTED = Counter(
    "claimkin_addresses_imported_total",
    "CSV import rows by result",
    ["result"],
)

EXPORTS = Counter(
    "claimkin_exports_total",
    "CSV exports served",
    ["scope"],
)
