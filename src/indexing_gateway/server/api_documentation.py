TITLE = "Indexing Gateway"

SUMMARY = (
    "Submit URLs to the Google Indexing API on behalf of many tenants, each"
    " authenticated with its own service account."
)

TAGS_METADATA = [
    {
        "name": "indexing",
        "description": (
            "URL submission and status operations. Every request carries the"
            " tenant's **service account** credential."
        ),
    },
    {
        "name": "cache",
        "description": "Inspect and reset the cache of authenticated API clients.",
    },
    {
        "name": "health",
        "description": "Liveness probe. Never requires an API key.",
    },
]
